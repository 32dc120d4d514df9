"""
Customer access token generation, parsing and hashing.

Responsibilities:
- Generate token strings of the form: ord_cat_<token_id>_<secret>
- Hash secrets and customer passwords with Argon2id
- Verify secrets without raising on mismatch
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

_hasher = PasswordHasher(time_cost=2, memory_cost=19456, parallelism=1, hash_len=32, type=Type.ID)

TOKEN_PREFIX = "ord_cat_"


@dataclass(frozen=True)
class ParsedToken:
    token_id: str
    secret: str


def generate_token_id() -> str:
    """Return a short hex token id suitable for DB lookup and logs."""
    return uuid.uuid4().hex[:16]


def generate_secret(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def build_token_string(token_id: str, secret: str) -> str:
    return f"{TOKEN_PREFIX}{token_id}_{secret}"


def parse_token(token: str) -> Optional[ParsedToken]:
    """Split a token string into token_id and secret; None if malformed."""
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    body = token[len(TOKEN_PREFIX):]
    # the id is hex; the secret may itself contain '_'
    idx = body.find("_")
    if idx <= 0:
        return None
    token_id, secret = body[:idx], body[idx + 1:]
    if not secret:
        return None
    return ParsedToken(token_id=token_id, secret=secret)


def hash_secret(secret: str) -> str:
    return _hasher.hash(secret)


def verify_secret(secret: str, encoded_hash: str) -> bool:
    if not secret or not encoded_hash:
        return False
    try:
        return _hasher.verify(encoded_hash, secret)
    except (VerificationError, InvalidHashError):
        return False


# Passwords share the Argon2id parameters used for token secrets
hash_password = hash_secret
verify_password = verify_secret


def generate_token() -> Tuple[str, str, str]:
    """Generate a new token and return (token_id, secret, full_token)."""
    tid = generate_token_id()
    sec = generate_secret()
    return tid, sec, build_token_string(tid, sec)
