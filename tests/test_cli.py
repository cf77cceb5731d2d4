"""Tests for the command line."""

from __future__ import annotations

import json

import pytest

from encodly.cli import main
from encodly.crypto.jwt_utils import decode_jwt, encode_jwt, verify_jwt_signature


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_hash_text(capsys):
    """Test hashing text prints the digest."""
    code, out, _ = run(capsys, "hash", "Hello World")
    assert code == 0
    assert out.strip() == "a591a6d40bf420404a011733cfb7b190d62c65bf0bcda32b57b277d9ad9f146e"


def test_hash_all_json(capsys):
    """Test --json output for every algorithm."""
    code, out, _ = run(capsys, "--json", "hash", "abc", "--algorithm", "all")
    assert code == 0
    items = json.loads(out)["items"]
    assert [item["algorithm"] for item in items] == ["SHA-1", "SHA-256", "SHA-384", "SHA-512"]


def test_hash_compare(capsys):
    """Test comparison exit codes."""
    code, out, _ = run(
        capsys, "hash", "Hello World", "--algorithm", "SHA-1",
        "--compare", "0A4D55A8D778E5022FAB701977C5D840BBC486D0",
    )
    assert code == 0
    assert "match" in out

    code, _, _ = run(capsys, "hash", "Hello World", "--compare", "deadbeef")
    assert code == 1


def test_hash_file_and_export(tmp_path, capsys):
    """Test file hashing with a report export."""
    source = tmp_path / "input.txt"
    source.write_bytes(b"Hello World")
    report = tmp_path / "report.txt"

    code, out, _ = run(capsys, "hash", "--file", str(source), "--algorithm", "SHA-1", "--export", str(report))
    assert code == 0
    assert out.strip() == "0a4d55a8d778e5022fab701977c5d840bbc486d0"
    assert "Hash Generation Results" in report.read_text(encoding="utf-8")


def test_hash_without_input(capsys):
    """Test a missing input is reported."""
    code, _, err = run(capsys, "hash")
    assert code == 1
    assert err.startswith("Error: ")


def test_jwt_round_trip(capsys, canonical_jwt):
    """Test encode then decode with verification."""
    code, out, _ = run(
        capsys, "jwt", "encode",
        "--header", json.dumps(canonical_jwt["header"]),
        "--payload", json.dumps(canonical_jwt["payload"], separators=(",", ":")),
        "--secret", canonical_jwt["secret"],
    )
    assert code == 0
    assert out.strip() == canonical_jwt["token"]

    code, out, _ = run(capsys, "--json", "jwt", "decode", canonical_jwt["token"], "--secret", canonical_jwt["secret"])
    decoded = json.loads(out)
    assert code == 0
    assert decoded["payload"]["name"] == "John Doe"
    assert decoded["is_signature_verified"] is True
    assert decoded["algorithm"] == "HS256"


def test_jwt_encode_with_algorithm(capsys):
    """Test --algorithm selects the HMAC variant."""
    for algorithm in ("HS384", "HS512"):
        code, out, _ = run(
            capsys, "jwt", "encode", "--payload", '{"sub":"1"}', "--secret", "s", "--algorithm", algorithm,
        )
        token = out.strip()
        assert code == 0
        assert decode_jwt(token).header["alg"] == algorithm
        assert verify_jwt_signature(token, "s")
        assert run(capsys, "jwt", "verify", token, "--secret", "s")[0] == 0


def test_jwt_decode_far_future_expiry(capsys):
    """Test an exp beyond the datetime range still decodes."""
    token = encode_jwt({}, {"sub": "1", "exp": 10**12}, "secret")
    code, out, _ = run(capsys, "jwt", "decode", token)
    assert code == 0
    assert "Expires: Invalid timestamp" in out

    code, out, _ = run(capsys, "--json", "jwt", "decode", token)
    decoded = json.loads(out)
    assert code == 0
    assert decoded["is_expired"] is False
    assert decoded["expiration_time"] is None


def test_jwt_verify_exit_codes(capsys, canonical_jwt):
    """Test verification results map to exit codes."""
    assert run(capsys, "jwt", "verify", canonical_jwt["token"], "--secret", canonical_jwt["secret"])[0] == 0
    code, out, _ = run(capsys, "jwt", "verify", canonical_jwt["token"], "--secret", "nope")
    assert code == 1
    assert "Invalid signature" in out


def test_jwt_errors(capsys):
    """Test decode and encode failures."""
    code, _, err = run(capsys, "jwt", "decode", "abc.def")
    assert code == 1
    assert "3 parts" in err

    code, _, err = run(capsys, "--json", "jwt", "encode", "--payload", "{bad", "--secret", "s")
    assert code == 1
    assert json.loads(err)["code"] == "INVALID_JSON"

    code, _, err = run(capsys, "jwt", "encode", "--template", "basic")
    assert code == 1
    assert "Secret key is required" in err


def test_uuid_generate(capsys):
    """Test bulk generation output."""
    code, out, _ = run(capsys, "uuid", "generate", "--version", "v7", "--count", "3")
    lines = out.split()
    assert code == 0
    assert len(lines) == 3
    assert all(line[14] == "7" for line in lines)


def test_uuid_export(tmp_path, capsys):
    """Test SQL export to a file."""
    target = tmp_path / "ids.sql"
    code, _, _ = run(
        capsys, "uuid", "generate", "--count", "2", "--export", "sql",
        "--table", "users", "--column", "id", "--output", str(target),
    )
    assert code == 0
    assert target.read_text(encoding="utf-8").startswith("INSERT INTO users (id) VALUES\n")


def test_uuid_validate_and_parse(capsys):
    """Test validation and parsing commands."""
    assert run(capsys, "uuid", "validate", "550e8400-e29b-41d4-a716-446655440000")[0] == 0
    assert run(capsys, "uuid", "validate", "nope")[0] == 1

    code, out, _ = run(capsys, "--json", "uuid", "parse", "c232ab00-9414-11ec-b3c8-9f6bdeced846")
    info = json.loads(out)
    assert code == 0
    assert info["version"] == 1
    assert info["node"] == "9f6bdeced846"


def test_qr_formats(tmp_path, capsys):
    """Test the output format follows the file extension."""
    png = tmp_path / "code.png"
    svg = tmp_path / "code.svg"

    assert run(capsys, "qr", "https://example.com", "--output", str(png), "--shape", "circle")[0] == 0
    assert png.read_bytes().startswith(b"\x89PNG")

    code, out, _ = run(capsys, "--json", "qr", "hello", "--output", str(svg), "--no-branding")
    assert code == 0
    assert svg.read_text(encoding="utf-8").startswith("<svg")
    assert json.loads(out)["content_type"] == "text"


def test_qr_invalid_color(tmp_path, capsys):
    """Test invalid options are reported."""
    code, _, err = run(capsys, "qr", "hello", "--output", str(tmp_path / "x.png"), "--dark", "nope")
    assert code == 1
    assert err.startswith("Error: ")


def test_base64_commands(tmp_path, capsys):
    """Test encoding and decoding."""
    code, out, _ = run(capsys, "base64", "encode", "Hello")
    assert code == 0
    assert out.strip() == "SGVsbG8="

    code, out, _ = run(capsys, "base64", "decode", "SGVsbG8=")
    assert out.strip() == "Hello"

    target = tmp_path / "out.bin"
    run(capsys, "base64", "decode", "AAEC", "--output", str(target))
    assert target.read_bytes() == b"\x00\x01\x02"

    code, _, err = run(capsys, "base64", "decode", "@@@@")
    assert code == 1
    assert "Decoding failed" in err


def test_url_commands(capsys):
    """Test URL conversion commands."""
    code, out, _ = run(capsys, "url", "encode", "a b")
    assert code == 0
    assert out.strip() == "a%20b"

    code, out, _ = run(capsys, "--json", "url", "auto", "a%20b")
    assert json.loads(out)["operation"] == "decode"

    code, _, err = run(capsys, "url", "decode", "%E2%82")
    assert code == 1
    assert "may not be properly encoded" in err


def test_remember_persists_settings(storage_path, capsys):
    """Test --remember stores inputs and reuses them."""
    assert run(capsys, "--remember", "uuid", "generate", "--version", "v1")[0] == 0
    assert run(capsys, "--remember", "url", "encode", "a b")[0] == 0

    stored = json.loads(storage_path.read_text(encoding="utf-8"))
    assert stored["uuid-generator-version"] == "v1"
    assert stored["url-converter-input"] == "a b"
    assert stored["url-converter-auto-convert"] is False

    code, out, _ = run(capsys, "--remember", "uuid", "generate")
    assert code == 0
    assert out.strip()[14] == "1"


def test_remember_reuses_hash_input(storage_path, capsys):
    """Test the last hashed text is reused when none is given."""
    run(capsys, "--remember", "hash", "Hello World", "--algorithm", "SHA-1")
    code, out, _ = run(capsys, "--remember", "hash", "--algorithm", "SHA-1")
    assert code == 0
    assert out.strip() == "0a4d55a8d778e5022fab701977c5d840bbc486d0"


def test_usage_errors_exit_with_argparse_code():
    """Test unknown commands are rejected by argparse."""
    with pytest.raises(SystemExit) as exc_info:
        main(["bogus"])
    assert exc_info.value.code == 2
