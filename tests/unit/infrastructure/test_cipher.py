"""Tests for the token cipher primitives."""

from __future__ import annotations

import base64
import json

import pytest

from hublinks.domain.entities import DecodeError
from hublinks.infrastructure.hoster_resolvers._cipher import (
    b64decode,
    decode_token,
    encode,
    extract_ck_token,
    extract_o_token,
    obfuscate,
    pen,
    rot13,
)

# ---------------------------------------------------------------------------
# Letter rotation
# ---------------------------------------------------------------------------


class TestRot13:
    def test_shifts_letters(self) -> None:
        assert rot13("Hello") == "Uryyb"

    def test_is_involution(self) -> None:
        text = "The Quick Brown Fox, 123!"
        assert rot13(rot13(text)) == text

    def test_non_letters_untouched(self) -> None:
        assert rot13("0123+/=_-") == "0123+/=_-"

    def test_wraps_at_end_of_alphabet(self) -> None:
        assert rot13("xyzXYZ") == "klmKLM"


class TestPen:
    def test_matches_rot13_by_default(self) -> None:
        assert pen("HubCloud links") == rot13("HubCloud links")

    def test_custom_shift(self) -> None:
        assert pen("abcZ", shift=1) == "bcdA"

    def test_preserves_case_and_symbols(self) -> None:
        assert pen("aZ-9") == "nM-9"


# ---------------------------------------------------------------------------
# Base64 helpers
# ---------------------------------------------------------------------------


class TestB64Decode:
    def test_decodes_padded(self) -> None:
        assert b64decode("aGVsbG8=") == "hello"

    def test_fixes_missing_padding(self) -> None:
        assert b64decode("aGVsbG8") == "hello"

    def test_strips_whitespace(self) -> None:
        assert b64decode("  aGk=\n") == "hi"

    def test_rejects_non_base64(self) -> None:
        with pytest.raises(ValueError):
            b64decode('{"a": 1}')

    def test_rejects_non_utf8(self) -> None:
        raw = base64.b64encode(b"\xff\xfe\xfa").decode()
        with pytest.raises(ValueError):
            b64decode(raw)


class TestEncode:
    def test_single_layer(self) -> None:
        assert encode("abc") == "YWJj"

    def test_obfuscate_rotates_then_encodes(self) -> None:
        assert obfuscate("abc") == encode("nop")
        assert b64decode(obfuscate("abc")) == "nop"


# ---------------------------------------------------------------------------
# decode_token
# ---------------------------------------------------------------------------


class TestDecodeToken:
    def test_full_path_round_trip(self, make_token) -> None:
        payload = {
            "data": "bmVzdGVk",
            "wp_http1": "https://redirect.test/r.php",
            "total_time": 7,
        }
        decoded = decode_token(make_token(payload))
        assert decoded.data == "bmVzdGVk"
        assert decoded.wp_http1 == "https://redirect.test/r.php"
        assert decoded.total_time == 7.0

    def test_encoder_output_in_site_wrapping(self) -> None:
        inner = encode(json.dumps({"o": "aHR0cHM6Ly9uZXh0LnRlc3Qv"}))
        token = encode(obfuscate(inner))
        assert decode_token(token).o == "aHR0cHM6Ly9uZXh0LnRlc3Qv"

    def test_degraded_path(self) -> None:
        raw = json.dumps({"wp_http": "https://redirect.test/", "data": "x"})
        token = encode(encode(raw))
        decoded = decode_token(token)
        assert decoded.wp_http1 == "https://redirect.test/"
        assert decoded.data == "x"

    def test_garbage_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode_token("not a token at all!")

    def test_json_array_rejected(self) -> None:
        with pytest.raises(DecodeError):
            decode_token(encode(encode("[1, 2, 3]")))

    def test_missing_fields_are_none(self, make_token) -> None:
        decoded = decode_token(make_token({}))
        assert decoded.data is None
        assert decoded.wp_http1 is None
        assert decoded.total_time is None
        assert decoded.o is None


# ---------------------------------------------------------------------------
# Token discovery in page HTML
# ---------------------------------------------------------------------------


class TestExtractTokens:
    def test_o_token(self) -> None:
        html = "<script>var a=1; s('o','QUJDREVG',180); </script>"
        assert extract_o_token(html) == "QUJDREVG"

    def test_o_token_missing(self) -> None:
        assert extract_o_token("<html></html>") is None

    def test_ck_pieces_joined_in_order(self) -> None:
        html = (
            "ck('_wp_http_1','AAA',180);"
            "ck('_wp_http_2','BBB',180);"
            "ck('_wp_http_3','CC',180);"
        )
        assert extract_ck_token(html) == "AAABBBCC"

    def test_ck_missing(self) -> None:
        assert extract_ck_token("<p>nothing here</p>") is None
