#!/usr/bin/env python3
# SPDX-License-Identifier: GPL-3.0-or-later
"""
goal: environment setup script for the integrity checker. auto-generates a .env file with a secure
      nonce secret if it doesn't exist, plus commented placeholders for the other settings.
"""

import secrets
from pathlib import Path


def generate_secret(length: int = 32) -> str:
    """
    generate a random hex secret string. length is in bytes, so length=32 gives a 64-character
    hex string.
    """
    return secrets.token_hex(length)


def setup_env(env_file: Path = Path(".env")) -> bool:
    """create .env with a fresh nonce secret. returns False when the file already exists."""
    # if .env already exists, don't overwrite it - dev might have custom values
    if env_file.exists():
        print("[OK] .env file already exists")
        print("  Skipping setup. Delete .env if you want to regenerate.")
        return False

    env_content = f"""# =========================================
# Integrity Checker Environment Variables
# =========================================
# auto-generated secrets - keep this file secure and never commit it!

# required: HMAC secret for REST nonces (auto-generated)
INTEGRITY_CHECKER_NONCE_SECRET={generate_secret(32)}

# WordPress install to check
# INTEGRITY_CHECKER_WP_ROOT=/var/www/html

# checksum service
# INTEGRITY_CHECKER_API_URL=https://api.wpessentials.io/v1/

# outgoing mail for test and alert emails
# INTEGRITY_CHECKER_SMTP_HOST=
# INTEGRITY_CHECKER_SMTP_USER=
# INTEGRITY_CHECKER_SMTP_PASSWORD=

# trusted contexts only: disable the nonce check
# INTEGRITY_CHECKER_NO_REST_AUTH=false
"""
    env_file.write_text(env_content, encoding="utf-8")

    print("[OK] Created .env file with an auto-generated nonce secret")
    print("  Keep .env secure - it contains secrets and should never be committed!")
    return True


if __name__ == "__main__":
    setup_env()
