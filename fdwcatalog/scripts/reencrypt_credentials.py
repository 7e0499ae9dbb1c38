"""
Re-encrypt User Mapping Passwords
=================================

CLI script for credential secret rotation.
Decrypts every stored user mapping password with the old secret and
re-encrypts it with the new one. Foreign servers are not touched; the
plaintext password on the database side does not change.

Usage:
    python -m fdwcatalog.scripts.reencrypt_credentials --old-secret OLD --new-secret NEW
"""

import argparse
import logging
import sys
from typing import Callable, Tuple

from cryptography.fernet import InvalidToken
from sqlmodel import select

from fdwcatalog.core.credential_crypto import decrypt_text, encrypt_text
from fdwcatalog.core.database import get_session_context
from fdwcatalog.models.remote_server import RemoteServer

logger = logging.getLogger(__name__)


def reencrypt_all(
    old_secret: str,
    new_secret: str,
    session_factory: Callable = get_session_context,
) -> Tuple[int, int]:
    """Re-encrypt all stored passwords. Returns (success, failed).

    Rows that fail to decrypt are left unchanged and counted as failed.
    """
    success = 0
    failed = 0

    with session_factory() as session:
        rows = session.exec(select(RemoteServer)).all()

        for row in rows:
            mapping = row.user_mapping_options
            if not mapping or not mapping.get("password"):
                continue
            try:
                plaintext = decrypt_text(mapping["password"], old_secret)
            except InvalidToken:
                logger.warning(
                    "credential_reencrypt_failed",
                    extra={"remote_server_id": row.id, "workspace_id": row.workspace_id},
                )
                failed += 1
                continue

            row.user_mapping_options = {**mapping, "password": encrypt_text(plaintext, new_secret)}
            session.add(row)
            success += 1

        session.commit()

    return success, failed


def main() -> None:
    parser = argparse.ArgumentParser(description="Re-encrypt user mapping passwords after a secret change")
    parser.add_argument("--old-secret", required=True, help="Previous FDWCATALOG_CREDENTIAL_SECRET")
    parser.add_argument("--new-secret", required=True, help="New FDWCATALOG_CREDENTIAL_SECRET")
    args = parser.parse_args()

    success, failed = reencrypt_all(args.old_secret, args.new_secret)
    print(f"Re-encrypted {success} password(s), {failed} failure(s).")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
