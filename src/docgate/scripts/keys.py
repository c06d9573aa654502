# src/docgate/scripts/keys.py
"""Generate fresh secrets for DocGate in ``.env`` format.

Usage:
    python -m docgate.scripts.keys >> .env
"""

from __future__ import annotations

import argparse
import secrets

from docgate.core.settings import SECRET_LENGTH_BYTES


def generate_env_lines() -> list[str]:
    """Return ``KEY=value`` lines with two independent random secrets."""
    return [
        f"DOCGATE_ENCRYPTION_KEY={secrets.token_hex(SECRET_LENGTH_BYTES)}",
        f"DOCGATE_SESSION_SIGNING_KEY={secrets.token_hex(SECRET_LENGTH_BYTES)}",
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.parse_args(argv)
    for line in generate_env_lines():
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
