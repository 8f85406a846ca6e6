"""Token primitives shared by the HubCloud / HDHub4u resolvers.

The source pages embed their next hop as a JSON object hidden behind
base64 and ROT13 layers:

    token = b64(b64(rot13(b64(json))))

``decode_token`` peels those layers (with a degraded b64 → b64 → JSON
fallback for pages that skip the ROT13 layer).  ``pen``/``encode``/
``obfuscate`` are the lightweight one-pass helpers the redirect pages use
to build the next URL; they are not the inverse of ``decode_token``.
"""

from __future__ import annotations

import base64
import json
import re
import string
from typing import Any

import structlog

from hublinks.domain.entities.links import DecodedPayload, DecodeError

log = structlog.get_logger(__name__)

# s('o','<token>',180: gadgetsweb / hdhub4u redirector pages
_O_TOKEN_RE = re.compile(r"s\('o','([^']+)',180")

# ck('_wp_http_1','<piece>'): redirect pages split their token into pieces
_CK_PIECE_RE = re.compile(r"ck\('_wp_http_\d+','([^']+)'")

_ROT13_TABLE = str.maketrans(
    string.ascii_uppercase + string.ascii_lowercase,
    string.ascii_uppercase[13:]
    + string.ascii_uppercase[:13]
    + string.ascii_lowercase[13:]
    + string.ascii_lowercase[:13],
)


def rot13(text: str) -> str:
    """ROT13 over ASCII letters only; everything else passes through."""
    return text.translate(_ROT13_TABLE)


def pen(value: str, shift: int = 13) -> str:
    """Single-pass letter rotation used by the redirect pages.

    Case is preserved; uppercase wraps within A-Z, lowercase within a-z.
    """
    out: list[str] = []
    for ch in value:
        if "A" <= ch <= "Z":
            out.append(chr((ord(ch) - 0x41 + shift) % 26 + 0x41))
        elif "a" <= ch <= "z":
            out.append(chr((ord(ch) - 0x61 + shift) % 26 + 0x61))
        else:
            out.append(ch)
    return "".join(out)


def b64decode(data: str) -> str:
    """Decode base64 text with padding fix.

    Raises ``ValueError`` (``binascii.Error`` / ``UnicodeDecodeError``)
    on malformed input.
    """
    data = data.strip()
    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding
    return base64.b64decode(data, validate=True).decode("utf-8")


def encode(value: str) -> str:
    """One base64 layer."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def obfuscate(value: str) -> str:
    """One letter rotation followed by one base64 layer."""
    return encode(pen(value))


def _parse_object(text: str) -> dict[str, Any]:
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def decode_token(encoded: str) -> DecodedPayload:
    """Decode an embedded page token into a ``DecodedPayload``.

    Full path: b64 → b64 → ROT13 → b64 → JSON.
    Degraded path (when any full-path step fails): b64 → b64 → JSON.

    Raises ``DecodeError`` when both paths fail.
    """
    try:
        layer = b64decode(b64decode(encoded))
        return DecodedPayload.from_mapping(_parse_object(b64decode(rot13(layer))))
    except ValueError as exc:
        log.debug("token_decode_full_path_failed", error=str(exc))

    try:
        raw = _parse_object(b64decode(b64decode(encoded)))
    except ValueError as exc:
        log.warning("token_decode_failed", error=str(exc), token=encoded[:40])
        raise DecodeError(f"token could not be decoded: {exc}") from exc

    log.debug("token_decode_degraded_path")
    return DecodedPayload.from_mapping(raw)


def extract_o_token(html: str) -> str | None:
    """Return the ``s('o', ...)`` token embedded in a redirector page."""
    match = _O_TOKEN_RE.search(html)
    return match.group(1) if match else None


def extract_ck_token(html: str) -> str | None:
    """Return the concatenation of all ``ck('_wp_http_N', ...)`` pieces."""
    pieces = _CK_PIECE_RE.findall(html)
    return "".join(pieces) or None
