"""Shared base64url and canonical JSON helpers.

All wire artefacts (DIDs, token segments, proof values) use unpadded
base64url. Decoding is strict: characters outside the URL-safe alphabet and
non-canonical trailing bits are rejected, so two different strings never
decode to the same bytes.
"""
from __future__ import annotations

import base64
import binascii
import json
import re

_B64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


def b64url_encode(data: bytes) -> str:
    """Encode *data* as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Decode unpadded base64url *text*.

    Raises
    ------
    ValueError
        If *text* contains characters outside the base64url alphabet, has an
        impossible length, or is not the canonical encoding of its bytes.
    """
    if not isinstance(text, str) or not _B64URL_PATTERN.match(text):
        raise ValueError("not a base64url string")
    if len(text) % 4 == 1:
        raise ValueError(f"invalid base64url length {len(text)}")
    try:
        decoded = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except binascii.Error as exc:
        raise ValueError(f"invalid base64url data: {exc}") from exc
    if b64url_encode(decoded) != text:
        raise ValueError("non-canonical base64url encoding")
    return decoded


def canonical_json(value: object) -> bytes:
    """Return the compact, key-sorted UTF-8 JSON encoding of *value*."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


__all__ = ["b64url_decode", "b64url_encode", "canonical_json"]
