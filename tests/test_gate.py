"""End-to-end tests for the access gate."""

from __future__ import annotations

import pytest

from conftest import CHALLENGE_TTL, GUIDE_ID, GUIDE_TEXT, SESSION_TTL
from docgate.core.exceptions import (
    AddressNotWhitelisted,
    ChallengeExpired,
    ChallengeNotFound,
    ConfigurationError,
    ContentNotFound,
    ContentStorageError,
    DecryptionFailed,
    InvalidAddressFormat,
    SessionExpired,
    SessionTampered,
    SignatureMismatch,
)
from docgate.services.cipher import encrypt
from docgate.services.gate import ClientState


def test_allowlisted_lowercase_login_then_fetch(gate, wallet, sign) -> None:
    """Allow-list holds the checksummed form; login claims the lowercase form."""
    challenge = gate.start_login()
    session = gate.complete_login(
        challenge.challenge_id,
        wallet.address.lower(),
        sign(wallet, challenge.message),
    )
    assert session.address == wallet.address.lower()
    assert gate.fetch_content(session.token, GUIDE_ID) == GUIDE_TEXT


def test_non_allowlisted_wallet_gets_no_session(gate, other_wallet, sign) -> None:
    challenge = gate.start_login()
    with pytest.raises(AddressNotWhitelisted):
        gate.complete_login(
            challenge.challenge_id,
            other_wallet.address,
            sign(other_wallet, challenge.message),
        )


def test_removed_address_loses_access_before_expiry(gate, wallet, login) -> None:
    session = login(wallet)
    assert gate.fetch_content(session.token, GUIDE_ID) == GUIDE_TEXT

    gate.reload_allowlist({"addresses": []})

    with pytest.raises(AddressNotWhitelisted):
        gate.fetch_content(session.token, GUIDE_ID)


def test_replayed_login_fails(gate, wallet, sign) -> None:
    challenge = gate.start_login()
    signature = sign(wallet, challenge.message)
    gate.complete_login(challenge.challenge_id, wallet.address, signature)
    with pytest.raises(ChallengeNotFound):
        gate.complete_login(challenge.challenge_id, wallet.address, signature)


def test_failed_login_still_consumes_challenge(gate, wallet, other_wallet, sign) -> None:
    challenge = gate.start_login()
    with pytest.raises(SignatureMismatch):
        gate.complete_login(
            challenge.challenge_id,
            wallet.address,
            sign(other_wallet, challenge.message),
        )
    with pytest.raises(ChallengeNotFound):
        gate.complete_login(challenge.challenge_id, wallet.address, sign(wallet, challenge.message))


def test_expired_challenge(gate, wallet, sign, clock) -> None:
    challenge = gate.start_login()
    clock.advance(seconds=CHALLENGE_TTL.total_seconds() + 1)
    with pytest.raises(ChallengeExpired):
        gate.complete_login(challenge.challenge_id, wallet.address, sign(wallet, challenge.message))


def test_signature_over_other_text_is_rejected(gate, wallet, sign) -> None:
    challenge = gate.start_login()
    with pytest.raises(SignatureMismatch):
        gate.complete_login(challenge.challenge_id, wallet.address, sign(wallet, "hello"))


def test_malformed_claimed_address_is_signature_mismatch(gate, wallet, sign) -> None:
    challenge = gate.start_login()
    with pytest.raises(SignatureMismatch):
        gate.complete_login(challenge.challenge_id, "0xnope", sign(wallet, challenge.message))


def test_bound_challenge_rejects_other_address(gate, wallet, other_wallet, sign) -> None:
    gate.reload_allowlist({"addresses": [wallet.address, other_wallet.address]})
    challenge = gate.start_login(wallet.address)
    assert wallet.address.lower() in challenge.message
    with pytest.raises(SignatureMismatch):
        gate.complete_login(
            challenge.challenge_id,
            other_wallet.address,
            sign(other_wallet, challenge.message),
        )


def test_bound_challenge_accepts_its_address(gate, wallet, sign) -> None:
    challenge = gate.start_login(wallet.address)
    session = gate.complete_login(
        challenge.challenge_id, wallet.address, sign(wallet, challenge.message)
    )
    assert session.address == wallet.address.lower()


def test_start_login_with_malformed_address(gate) -> None:
    with pytest.raises(InvalidAddressFormat):
        gate.start_login("0x123")


def test_expired_session_returns_client_to_anonymous(gate, wallet, login, clock) -> None:
    session = login(wallet)
    assert gate.client_state(session.token) is ClientState.AUTHENTICATED
    clock.advance(seconds=SESSION_TTL.total_seconds() + 1)
    with pytest.raises(SessionExpired):
        gate.fetch_content(session.token, GUIDE_ID)
    assert gate.client_state(session.token) is ClientState.ANONYMOUS
    assert gate.client_state(None) is ClientState.ANONYMOUS


def test_pending_challenge_puts_client_mid_login(gate, wallet, sign) -> None:
    challenge = gate.start_login(wallet.address)
    assert gate.client_state(None, challenge.challenge_id) is ClientState.CHALLENGE_ISSUED
    assert gate.client_state("a.b.c", challenge.challenge_id) is ClientState.CHALLENGE_ISSUED
    session = gate.complete_login(
        challenge.challenge_id, wallet.address, sign(wallet, challenge.message)
    )
    assert gate.client_state(session.token, challenge.challenge_id) is ClientState.AUTHENTICATED
    assert gate.client_state(None, challenge.challenge_id) is ClientState.ANONYMOUS


def test_expired_challenge_returns_client_to_anonymous(gate, clock) -> None:
    challenge = gate.start_login()
    clock.advance(seconds=CHALLENGE_TTL.total_seconds() + 1)
    assert gate.client_state(None, challenge.challenge_id) is ClientState.ANONYMOUS
    assert gate.client_state(None, "unknown") is ClientState.ANONYMOUS


def test_tampered_session_is_rejected(gate, wallet, login) -> None:
    token = login(wallet).token
    forged = token[:-3] + ("AAA" if token[-3:] != "AAA" else "BBB")
    with pytest.raises(SessionTampered):
        gate.fetch_content(forged, GUIDE_ID)


def test_missing_document(gate, wallet, login) -> None:
    with pytest.raises(ContentNotFound):
        gate.fetch_content(login(wallet).token, "missing.md")


def test_unauthenticated_request_never_reaches_storage(gate) -> None:
    with pytest.raises(SessionTampered):
        gate.fetch_content("a.b.c", "missing.md")


def test_document_swapped_between_ids_fails_decryption(gate, wallet, login, document_store) -> None:
    document_store.put("other.md", document_store.get(GUIDE_ID))
    with pytest.raises(DecryptionFailed):
        gate.fetch_content(login(wallet).token, "other.md")


def test_document_under_foreign_key_fails_decryption(gate, wallet, login, document_store) -> None:
    document_store.put("foreign.md", encrypt(b"x", b"\x01" * 32, associated_data=b"foreign.md"))
    with pytest.raises(DecryptionFailed):
        gate.fetch_content(login(wallet).token, "foreign.md")


def test_storage_io_failure_is_distinct(gate, wallet, login, monkeypatch) -> None:
    token = login(wallet).token

    def broken_get(document_id: str):
        raise OSError("disk gone")

    monkeypatch.setattr(gate.documents, "get", broken_get)
    with pytest.raises(ContentStorageError) as excinfo:
        gate.fetch_content(token, GUIDE_ID)
    assert excinfo.value.retryable


def test_authentication_errors_are_not_retryable(gate) -> None:
    with pytest.raises(SessionTampered) as excinfo:
        gate.authenticate("a.b.c")
    assert excinfo.value.retryable is False


def test_reload_without_source_is_configuration_error(gate) -> None:
    with pytest.raises(ConfigurationError):
        gate.reload_allowlist()


def test_session_issued_with_configured_ttl(gate, wallet, login, clock) -> None:
    session = login(wallet)
    assert session.issued_at == clock.now
    assert session.expires_at == clock.now + SESSION_TTL
    clock.advance(seconds=SESSION_TTL.total_seconds())
    assert gate.authenticate(session.token) == wallet.address.lower()
    clock.advance(seconds=1)
    with pytest.raises(SessionExpired):
        gate.authenticate(session.token)


def test_challenge_ttl_is_independent_of_session_ttl(gate, clock) -> None:
    challenge = gate.start_login()
    assert challenge.expires_at - challenge.issued_at == CHALLENGE_TTL
    assert CHALLENGE_TTL != SESSION_TTL
    assert clock.now == challenge.issued_at

