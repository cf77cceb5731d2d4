"""Tests for JWT decoding, encoding and verification."""

from __future__ import annotations

import warnings
from datetime import datetime, timezone

import pytest

from encodly.crypto.jwt_utils import (
    JWTEncodeError,
    base64url_decode,
    base64url_encode,
    decode_jwt,
    encode_jwt,
    extract_jwt_token,
    format_time_until_expiry,
    format_timestamp,
    payload_template,
    validate_and_parse_json,
    validate_jwt,
    verify_jwt_signature,
)


@pytest.mark.parametrize(
    "text",
    ["", "a", "ab", "abc", "abcd", "été", "😀 🔐", "?>?", "~~~", '{"sub":"1"}'],
)
def test_base64url_round_trip(text):
    """Test decoding the base64url encoding of text returns the text."""
    encoded = base64url_encode(text)
    assert "=" not in encoded
    assert "+" not in encoded
    assert "/" not in encoded
    assert base64url_decode(encoded) == text


def test_base64url_uses_url_alphabet():
    """Test the characters standard base64 writes as + and / become - and _."""
    assert base64url_encode("?>?") == "Pz4_"
    assert base64url_encode("~~~") == "fn5-"
    assert base64url_encode("ab") == "YWI"


def test_encode_matches_canonical_token(canonical_jwt):
    """Test encoding reproduces the published HS256 example byte for byte."""
    token = encode_jwt(canonical_jwt["header"], canonical_jwt["payload"], canonical_jwt["secret"])
    assert token == canonical_jwt["token"]


def test_decode_canonical_token(canonical_jwt):
    """Test decoding splits header, payload and signature."""
    decoded = decode_jwt(canonical_jwt["token"])
    assert decoded.is_valid
    assert decoded.header == canonical_jwt["header"]
    assert decoded.payload == canonical_jwt["payload"]
    assert decoded.signature == "SflKxwRJSMeKKF2QT4fwpMeJf36POk6yJV_adQssw5c"


def test_decode_strips_bearer_prefix(canonical_jwt):
    """Test a Bearer prefix is ignored."""
    decoded = decode_jwt(f"  Bearer {canonical_jwt['token']} ")
    assert decoded.is_valid
    assert decoded.payload["name"] == "John Doe"


def test_decode_wrong_part_count():
    """Test tokens without three parts are rejected with a message."""
    decoded = decode_jwt("abc.def")
    assert not decoded.is_valid
    assert decoded.error == "Invalid JWT format. JWT must have exactly 3 parts separated by dots."


def test_decode_bad_segment():
    """Test undecodable segments are reported."""
    decoded = decode_jwt("!!!.@@@.sig")
    assert not decoded.is_valid
    assert decoded.error == "Failed to decode JWT parts. Invalid base64 encoding."


def test_verify_signature(canonical_jwt):
    """Test verification with right and wrong secrets."""
    token = canonical_jwt["token"]
    assert verify_jwt_signature(token, canonical_jwt["secret"])
    assert not verify_jwt_signature(token, "wrong-secret")
    assert not verify_jwt_signature(token, "")
    assert not verify_jwt_signature("not-a-token", canonical_jwt["secret"])


def test_verify_rejects_tampered_signature(canonical_jwt):
    """Test a single changed signature character fails verification."""
    token = canonical_jwt["token"]
    flipped = "A" if token[-2] != "A" else "B"
    tampered = token[:-2] + flipped + token[-1]
    assert not verify_jwt_signature(tampered, canonical_jwt["secret"])


def test_verify_rejects_non_hmac_algorithms():
    """Test tokens claiming none or RS256 are never verified."""
    for alg in ("none", "RS256"):
        header = base64url_encode('{"alg":"%s","typ":"JWT"}' % alg)
        payload = base64url_encode('{"sub":"1"}')
        assert not verify_jwt_signature(f"{header}.{payload}.", "secret")


def test_hs384_and_hs512_tokens_verify():
    """Test the longer HMAC variants sign and verify."""
    for algorithm in ("HS384", "HS512"):
        token = encode_jwt({"typ": "JWT"}, {"sub": "1"}, "secret", algorithm)
        assert decode_jwt(token).header == {"typ": "JWT", "alg": algorithm}
        assert verify_jwt_signature(token, "secret")


def test_verify_short_secret_is_quiet(canonical_jwt):
    """Test verifying with a short example secret emits no warnings."""
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert verify_jwt_signature(canonical_jwt["token"], canonical_jwt["secret"])
        assert not verify_jwt_signature(canonical_jwt["token"], "s")


def test_verify_rejects_signature_from_other_algorithm():
    """Test an HS256 signature under an HS512 header does not verify."""
    hs256 = encode_jwt({}, {"sub": "1"}, "secret", "HS256")
    hs512 = encode_jwt({}, {"sub": "1"}, "secret", "HS512")
    swapped = hs512.rsplit(".", 1)[0] + "." + hs256.rsplit(".", 1)[1]
    assert not verify_jwt_signature(swapped, "secret")


def test_encode_forces_header_algorithm():
    """Test the header alg always matches the signing algorithm."""
    token = encode_jwt({"alg": "HS512"}, {"sub": "1"}, "secret", "HS256")
    header = decode_jwt(token).header
    assert header["alg"] == "HS256"
    assert header["typ"] == "JWT"


def test_encode_keeps_non_ascii_text():
    """Test non-ASCII claims survive encoding unchanged."""
    token = encode_jwt({"alg": "HS256", "typ": "JWT"}, {"name": "JosÃ©"}, "secret")
    assert decode_jwt(token).payload == {"name": "JosÃ©"}
    assert "JosÃ©" in base64url_decode(token.split(".")[1])


def test_encode_errors():
    """Test invalid encode input raises JWTEncodeError with a message."""
    with pytest.raises(JWTEncodeError, match="Payload must be a valid JSON object"):
        encode_jwt({}, [1, 2], "secret")
    with pytest.raises(JWTEncodeError, match="Header must be a valid JSON object"):
        encode_jwt("x", {}, "secret")
    with pytest.raises(JWTEncodeError, match="Secret key is required"):
        encode_jwt({}, {}, "   ")
    with pytest.raises(JWTEncodeError, match="Unsupported algorithm"):
        encode_jwt({}, {}, "secret", "RS256")


def test_validate_expiry():
    """Test expiry detection relative to a fixed clock."""
    token = encode_jwt({}, {"exp": 1_000_100}, "secret")
    validation = validate_jwt(decode_jwt(token), now=1_000_000)
    assert validation.is_valid_structure
    assert validation.is_expired is False
    assert validation.time_until_expiry == 100_000
    assert validation.algorithm == "HS256"
    assert validation.expiration_time == datetime.fromtimestamp(1_000_100, tz=timezone.utc)

    expired = validate_jwt(decode_jwt(token), now=2_000_000)
    assert expired.is_expired is True
    assert expired.time_until_expiry == 0


@pytest.mark.parametrize("exp", [10**12, 1e20, 1e300])
def test_validate_expiry_beyond_datetime_range(exp):
    """Test expiry values past year 9999 are reported, not raised."""
    validation = validate_jwt(decode_jwt(encode_jwt({}, {"exp": exp}, "secret")), now=0)
    assert validation.is_valid_structure
    assert validation.is_expired is False
    assert validation.expiration_time is None
    assert validation.time_until_expiry == int(exp * 1000)

    expired = validate_jwt(decode_jwt(encode_jwt({}, {"exp": -exp}, "secret")), now=0)
    assert expired.is_expired is True
    assert expired.expiration_time is None


def test_validate_non_finite_exp():
    """Test an Infinity exp is not treated as a timestamp."""
    token = encode_jwt({}, {"exp": float("inf")}, "secret")
    validation = validate_jwt(decode_jwt(token), now=0)
    assert validation.is_valid_structure
    assert validation.is_expired is None
    assert validation.time_until_expiry is None


def test_validate_without_exp():
    """Test tokens without exp report no expiry state."""
    validation = validate_jwt(decode_jwt(encode_jwt({}, {"exp": True}, "secret")))
    assert validation.is_expired is None
    assert validation.expiration_time is None


def test_validate_malformed():
    """Test validation of a malformed token carries the decode error."""
    validation = validate_jwt(decode_jwt("a.b"))
    assert not validation.is_valid_structure
    assert "3 parts" in validation.error


def test_format_time_until_expiry():
    """Test human readable durations."""
    assert format_time_until_expiry(0) == "Expired"
    assert format_time_until_expiry(45_000) == "45s"
    assert format_time_until_expiry(61_000) == "1m 1s"
    assert format_time_until_expiry(3_661_000) == "1h 1m"
    assert format_time_until_expiry(90_061_000) == "1d 1h"


def test_extract_token():
    """Test tokens are pulled from headers and surrounding text."""
    assert extract_jwt_token("Authorization: Bearer a.b.c") == "a.b.c"
    assert extract_jwt_token("bearer a.b.c") == "a.b.c"
    assert extract_jwt_token("token eyJa.eyJb.sig sent to api.example.com") == "eyJa.eyJb.sig"


def test_json_helpers():
    """Test JSON parsing and timestamp formatting helpers."""
    assert validate_and_parse_json('{"a": 1}').data == {"a": 1}
    assert validate_and_parse_json("").error == "JSON cannot be empty"
    assert not validate_and_parse_json("{").is_valid
    assert format_timestamp(0) == "1970-01-01 00:00:00 UTC"
    assert format_timestamp(1e20) == "Invalid timestamp"


def test_payload_templates():
    """Test preset payloads use the supplied clock."""
    admin = payload_template("admin", now=100)
    assert admin["role"] == "admin"
    assert admin["exp"] == 7300
    assert payload_template("refresh", now=0)["type"] == "refresh"
    with pytest.raises(KeyError):
        payload_template("unknown")
