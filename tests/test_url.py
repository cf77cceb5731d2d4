"""Tests for URL component conversion."""

from __future__ import annotations

import pytest

from encodly.utils.url_codec import (
    DECODE_ERROR,
    ENCODE_ERROR,
    URLDecodeError,
    URLEncodeError,
    decode_uri_component,
    detect_operation,
    encode_uri_component,
    process_input,
)


def test_encode_reserved_characters():
    """Test reserved characters are escaped and unreserved ones kept."""
    assert encode_uri_component("a b&c=d") == "a%20b%26c%3Dd"
    assert encode_uri_component("?#+/") == "%3F%23%2B%2F"
    assert encode_uri_component("-_.!~*'()") == "-_.!~*'()"


def test_encode_utf8():
    """Test non-ASCII text is percent-encoded as UTF-8."""
    assert encode_uri_component("é") == "%C3%A9"
    assert encode_uri_component("€") == "%E2%82%AC"


def test_encode_lone_surrogate():
    """Test unpaired surrogates cannot be encoded."""
    with pytest.raises(URLEncodeError):
        encode_uri_component("\ud800")


def test_decode():
    """Test escapes decode and plus signs stay literal."""
    assert decode_uri_component("%E2%82%AC") == "€"
    assert decode_uri_component("a%20b+c") == "a b+c"
    assert decode_uri_component("%c3%a9") == "é"


@pytest.mark.parametrize("value", ["%", "%2", "%ZZ", "100%", "%E2%82"])
def test_decode_malformed(value):
    """Test malformed escapes and truncated UTF-8 raise."""
    with pytest.raises(URLDecodeError):
        decode_uri_component(value)


def test_detect_operation():
    """Test auto-detection of direction."""
    assert detect_operation("hello%20world") == "decode"
    assert detect_operation("hello world") == "encode"
    assert detect_operation("100%") == "encode"
    assert detect_operation("%E2%82") == "encode"


def test_process_input_auto():
    """Test automatic conversion in both directions."""
    encoded = process_input("  https://example.com/?q=a b  ")
    assert encoded.operation == "encode"
    assert encoded.output == "https%3A%2F%2Fexample.com%2F%3Fq%3Da%20b"
    assert encoded.is_valid

    decoded = process_input(encoded.output)
    assert decoded.operation == "decode"
    assert decoded.output == "https://example.com/?q=a b"


def test_process_input_blank():
    """Test blank input yields an empty result with no operation."""
    result = process_input("   ")
    assert result.output == ""
    assert result.operation is None
    assert result.is_valid is None

    assert process_input("", "encode").error == "Please enter a URL to encode"


def test_process_input_errors():
    """Test failures are reported in the result."""
    decode_failure = process_input("%ZZ", "decode")
    assert decode_failure.error == DECODE_ERROR
    assert decode_failure.output == ""
    assert not decode_failure.is_valid

    assert process_input("\ud800", "encode").error == ENCODE_ERROR

    with pytest.raises(ValueError):
        process_input("x", "reverse")
