# tests/conftest.py
from __future__ import annotations

import secrets
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docgate.main import create_app
from docgate.services.allowlist import AllowList
from docgate.services.challenges import ChallengeStore
from docgate.services.cipher import ContentCipher
from docgate.services.documents import InMemoryDocumentStore
from docgate.services.gate import AccessGate
from docgate.services.sessions import SessionIssuer, SessionValidator

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)
SESSION_TTL = timedelta(hours=1)
CHALLENGE_TTL = timedelta(minutes=5)

GUIDE_ID = "guide/intro.md"
GUIDE_TEXT = b"# Members guide\n\nWelcome to the private docs.\n"


class FakeClock:
    """Deterministic, manually advanced clock for the gate."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def wallet() -> LocalAccount:
    """Primary test wallet (allow-listed by default)."""
    return Account.create()


@pytest.fixture()
def other_wallet() -> LocalAccount:
    """Secondary wallet that is never allow-listed."""
    return Account.create()


@pytest.fixture()
def sign() -> Callable[[LocalAccount, str | bytes], str]:
    """Return a helper producing a 0x-hex ``personal_sign`` signature."""

    def _sign(account: LocalAccount, message: str | bytes) -> str:
        signable = (
            encode_defunct(text=message)
            if isinstance(message, str)
            else encode_defunct(primitive=message)
        )
        signed = account.sign_message(signable)
        return "0x" + bytes(signed.signature).hex()

    return _sign


@pytest.fixture()
def encryption_key() -> bytes:
    return secrets.token_bytes(32)


@pytest.fixture()
def signing_key() -> bytes:
    return secrets.token_bytes(32)


@pytest.fixture()
def allowlist(wallet: LocalAccount) -> AllowList:
    """Allow-list containing the primary wallet in its checksummed spelling."""
    return AllowList.load({"addresses": [wallet.address]})


@pytest.fixture()
def cipher(encryption_key: bytes) -> ContentCipher:
    return ContentCipher(encryption_key)


@pytest.fixture()
def document_store(cipher: ContentCipher) -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.put(GUIDE_ID, cipher.encrypt(GUIDE_TEXT, associated_data=GUIDE_ID.encode()))
    return store


@pytest.fixture()
def gate(
    allowlist: AllowList,
    cipher: ContentCipher,
    document_store: InMemoryDocumentStore,
    signing_key: bytes,
    clock: FakeClock,
) -> AccessGate:
    return AccessGate(
        allowlist=allowlist,
        issuer=SessionIssuer(signing_key),
        validator=SessionValidator(signing_key),
        cipher=cipher,
        documents=document_store,
        challenges=ChallengeStore(CHALLENGE_TTL, domain="docs.example"),
        session_ttl=SESSION_TTL,
        clock=clock,
    )


@pytest.fixture()
def login(
    gate: AccessGate,
    sign: Callable[[LocalAccount, str | bytes], str],
) -> Callable[[LocalAccount], Any]:
    """Run the full challenge/sign/complete flow for ``account``."""

    def _login(account: LocalAccount) -> Any:
        challenge = gate.start_login()
        return gate.complete_login(
            challenge.challenge_id,
            account.address,
            sign(account, challenge.message),
        )

    return _login


@pytest.fixture()
def app(gate: AccessGate) -> FastAPI:
    return create_app(gate=gate)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
