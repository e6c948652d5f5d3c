import hashlib
import hmac
import secrets
import string
import unicodedata
from typing import List

import bcrypt

from survey_api.config import BCRYPT_ROUNDS

PASSWORD_MIN_LENGTH = 8
TOKEN_SECRET_LENGTH = 40
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def _is_symbol(char: str) -> bool:
    # punctuation, symbols and separators (whitespace) all count
    return unicodedata.category(char)[0] in ("P", "S", "Z")


def password_rule_violations(password: str, confirmation: str) -> List[str]:
    """
    Check a new password against the registration rules.

    Returns one message per violated rule, an empty list if the password
    is acceptable.
    """
    violations = []
    if password != confirmation:
        violations.append("The password confirmation does not match.")
    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(
            f"The password must be at least {PASSWORD_MIN_LENGTH} characters."
        )
    if not (
        any(c.isupper() for c in password) and any(c.islower() for c in password)
    ):
        violations.append(
            "The password must contain at least one uppercase and one lowercase letter."
        )
    if not any(c.isdigit() for c in password):
        violations.append("The password must contain at least one number.")
    if not any(_is_symbol(c) for c in password):
        violations.append("The password must contain at least one symbol.")
    return violations


def generate_token_secret() -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(TOKEN_SECRET_LENGTH))


def hash_token(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def token_matches(secret: str, token_hash: str) -> bool:
    return hmac.compare_digest(hash_token(secret), token_hash)
