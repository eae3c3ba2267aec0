"""Masking and hashing primitives used by the redaction engine.

All functions are pure and total over strings; they never raise for
well-typed input.  Counts are validated when rules are loaded, not here.

Example
-------
>>> mask_middle("784-1990-1234567-1", 7)
'784-1*******4567-1'
>>> mask_last("0501234567", 7)
'050*******'
>>> mask_local_part("aisha@example.ae")
'a****@example.ae'
"""
from __future__ import annotations

import hashlib
import hmac
from datetime import datetime

MASK_CHAR = "*"


def mask_middle(value: str, n: int) -> str:
    """Replace the middle ``n`` characters of ``value`` with ``*``.

    The first ``(len - n) // 2`` characters are kept; the rest of the kept
    characters (one more when ``len - n`` is odd) stay on the right.  A value
    no longer than ``n`` is masked completely.
    """
    length = len(value)
    if length <= n:
        return MASK_CHAR * length
    head = (length - n) // 2
    return value[:head] + MASK_CHAR * n + value[head + n :]


def mask_last(value: str, n: int) -> str:
    """Replace the last ``n`` characters of ``value`` with ``*``."""
    length = len(value)
    if length <= n:
        return MASK_CHAR * length
    return value[: length - n] + MASK_CHAR * n


def mask_local_part(value: str) -> str:
    """Mask an email's local part, keeping its first character and the domain.

    Values without an ``@`` are masked completely.
    """
    local, sep, domain = value.rpartition("@")
    if not sep or not local:
        return MASK_CHAR * len(value)
    return local[0] + MASK_CHAR * (len(local) - 1) + sep + domain


def hash_with_salt(value: str, salt: bytes) -> str:
    """Return the hex HMAC-SHA256 of ``value`` keyed with ``salt``."""
    return hmac.new(salt, value.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_with_timestamp(value: str, salt: bytes, moment: datetime) -> str:
    """Return a salted hash bound to ``moment``; repeat calls differ over time."""
    material = f"{value}|{moment.isoformat()}"
    return hmac.new(salt, material.encode("utf-8"), hashlib.sha256).hexdigest()
