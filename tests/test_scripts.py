"""Tests for operator scripts."""

from __future__ import annotations

import secrets
from pathlib import Path

from docgate.scripts.encrypt_docs import encrypt_tree, main as encrypt_main
from docgate.scripts.keys import generate_env_lines, main as keys_main
from docgate.services.cipher import ContentCipher
from docgate.services.documents import FileSystemDocumentStore


def _write_tree(root: Path) -> None:
    (root / "guide").mkdir(parents=True)
    (root / "index.md").write_text("# Home\n", encoding="utf-8")
    (root / "guide" / "setup.md").write_text("# Setup\n", encoding="utf-8")
    (root / ".DS_Store").write_bytes(b"junk")


def test_generate_env_lines_are_distinct_valid_secrets() -> None:
    lines = generate_env_lines()
    values = [line.split("=", 1)[1] for line in lines]
    assert [line.split("=", 1)[0] for line in lines] == [
        "DOCGATE_ENCRYPTION_KEY",
        "DOCGATE_SESSION_SIGNING_KEY",
    ]
    assert all(len(bytes.fromhex(value)) == 32 for value in values)
    assert values[0] != values[1]


def test_keys_main_prints_env(capsys) -> None:
    assert keys_main([]) == 0
    assert "DOCGATE_ENCRYPTION_KEY=" in capsys.readouterr().out


def test_encrypt_tree_round_trips(tmp_path: Path) -> None:
    source = tmp_path / "docs"
    _write_tree(source)
    cipher = ContentCipher(secrets.token_bytes(32))
    store = FileSystemDocumentStore(tmp_path / "content")

    written = encrypt_tree(source, store, cipher)

    assert written == ["guide/setup.md", "index.md"]
    doc = store.get("guide/setup.md")
    assert cipher.decrypt(doc, associated_data=b"guide/setup.md") == b"# Setup\n"


def test_encrypt_main_uses_configured_key(tmp_path: Path, monkeypatch, capsys) -> None:
    source = tmp_path / "docs"
    _write_tree(source)
    key = secrets.token_bytes(32)
    monkeypatch.setenv("DOCGATE_ENCRYPTION_KEY", key.hex())

    assert encrypt_main([str(source), str(tmp_path / "out")]) == 0

    store = FileSystemDocumentStore(tmp_path / "out")
    plaintext = ContentCipher(key).decrypt(store.get("index.md"), associated_data=b"index.md")
    assert plaintext == b"# Home\n"
    assert "Encrypted 2 document(s)" in capsys.readouterr().out


def test_encrypt_main_without_key_fails(tmp_path: Path, monkeypatch, capsys) -> None:
    source = tmp_path / "docs"
    _write_tree(source)
    monkeypatch.delenv("DOCGATE_ENCRYPTION_KEY", raising=False)
    monkeypatch.chdir(tmp_path)

    assert encrypt_main([str(source), str(tmp_path / "out")]) == 1
    assert "DOCGATE_ENCRYPTION_KEY" in capsys.readouterr().err
