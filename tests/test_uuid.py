"""Tests for UUID generation, validation and parsing."""

from __future__ import annotations

import json
import math
import uuid
from datetime import datetime, timezone

import pytest

from encodly.utils import uuid_utils
from encodly.utils.uuid_utils import (
    MAX_UUID,
    NIL_UUID,
    UUIDVersion,
    calculate_collision_probability,
    export_uuids,
    extract_timestamp,
    format_uuid,
    format_uuid_custom,
    generate_bulk_uuids,
    generate_uuid,
    parse_uuid,
    uuid6,
    uuid7,
    validate_uuid,
)

# RFC 9562 appendix A test vectors (2022-02-22 14:22:22 -05:00)
RFC_V1 = "c232ab00-9414-11ec-b3c8-9f6bdeced846"
RFC_V6 = "1ec9414c-232a-6b00-b3c8-9f6bdeced846"
RFC_V7 = "017f22e2-79b0-7cc3-98c4-dc0c0c07398f"
RFC_TIME = datetime(2022, 2, 22, 19, 22, 22, tzinfo=timezone.utc)


@pytest.mark.parametrize("version", list(UUIDVersion))
def test_version_and_variant_nibbles(version):
    """Test generated UUIDs carry their version at index 14 and the RFC variant."""
    value = generate_uuid(version, namespace="DNS", name="example.com")
    assert len(value) == 36
    assert value[14] == str(version.number)
    assert value[19] in "89ab"
    assert validate_uuid(value).version == version.number


def test_namespace_uuids_are_deterministic():
    """Test v3/v5 against Python's documented examples."""
    assert generate_uuid("v3", "DNS", "python.org") == "6fa459ea-ee8a-3ca4-894e-db77e160355e"
    assert generate_uuid("v5", "dns", "python.org") == "886313e1-3b8a-5372-9b90-0c9aee199e5d"
    assert generate_uuid("v5", str(uuid.NAMESPACE_DNS), "python.org") == "886313e1-3b8a-5372-9b90-0c9aee199e5d"


def test_namespace_uuid_requires_inputs():
    """Test v3/v5 without name or namespace raise."""
    with pytest.raises(ValueError, match="Name is required"):
        generate_uuid("v5", "DNS", None)
    with pytest.raises(ValueError, match="Namespace is required"):
        generate_uuid("v3", None, "name")
    with pytest.raises(ValueError, match="Invalid namespace"):
        generate_uuid("v3", "not-a-uuid", "name")


def test_uuid6_reorders_v1(monkeypatch):
    """Test v6 is the v1 timestamp reordered most significant first."""
    monkeypatch.setattr(uuid_utils.uuid, "uuid1", lambda: uuid.UUID(RFC_V1))
    assert uuid6() == RFC_V6


def test_uuid7_timestamp_prefix():
    """Test v7 starts with the 48-bit millisecond timestamp."""
    value = uuid7(unix_ms=1_700_000_000_000)
    assert value.startswith("018bcfe5-6800-7")
    assert extract_timestamp(value) == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


def test_uuid7_is_time_ordered():
    """Test later timestamps sort after earlier ones."""
    assert uuid7(unix_ms=1_000) < uuid7(unix_ms=2_000)


def test_extract_timestamps_from_rfc_vectors():
    """Test creation time decoding for v1, v6 and v7."""
    assert extract_timestamp(RFC_V1) == RFC_TIME
    assert extract_timestamp(RFC_V6) == RFC_TIME
    assert extract_timestamp(RFC_V7) == RFC_TIME
    assert extract_timestamp("550e8400-e29b-41d4-a716-446655440000") is None


def test_bulk_generation_limits():
    """Test bulk count bounds."""
    assert len(set(generate_bulk_uuids("v4", 50))) == 50
    assert generate_bulk_uuids("v5", 3, "URL", "https://example.com")[0] == generate_uuid(
        "v5", "URL", "https://example.com"
    )
    with pytest.raises(ValueError):
        generate_bulk_uuids("v4", 0)
    with pytest.raises(ValueError):
        generate_bulk_uuids("v4", 11, max_count=10)


def test_validate_formats():
    """Test standard and compact inputs."""
    standard = validate_uuid("550E8400-E29B-41D4-A716-446655440000")
    assert standard.is_valid
    assert standard.format == "standard"
    assert standard.version == 4

    compact = validate_uuid("550e8400e29b41d4a716446655440000")
    assert compact.is_valid
    assert compact.format == "compact"


def test_validate_special_and_invalid():
    """Test nil/max acceptance and rejection of bad input."""
    assert validate_uuid(NIL_UUID).version == 0
    assert validate_uuid(MAX_UUID).version == 15

    invalid = validate_uuid("550e8400-e29b-81d4-a716-446655440000")  # version 8
    assert not invalid.is_valid
    assert invalid.errors == ["Invalid UUID format"]

    assert validate_uuid("550e8400-e29b-41d4-c716-446655440000").is_valid is False  # variant c
    assert validate_uuid("").errors == ["UUID is required and must be a string"]
    assert validate_uuid(None).format == "invalid"


def test_format_uuid():
    """Test reformatting."""
    value = "550e8400-e29b-41d4-a716-446655440000"
    assert format_uuid(value, "compact") == "550e8400e29b41d4a716446655440000"
    assert format_uuid(value, "uppercase") == value.upper()
    assert format_uuid("550e8400e29b41d4a716446655440000") == value
    assert format_uuid("garbage", "uppercase") == "garbage"
    assert format_uuid_custom(value, case="upper", prefix="{", suffix="}") == "{" + value.upper() + "}"
    assert format_uuid_custom(value, remove_separators=True) == value.replace("-", "")


def test_parse_v1():
    """Test v1 field extraction."""
    info = parse_uuid(RFC_V1)
    assert info.version == 1
    assert info.variant == "RFC 4122"
    assert info.timestamp == "1ec9414c232ab00"
    assert info.clock_sequence == "b3c8"
    assert info.node == "9f6bdeced846"
    assert info.created_at == RFC_TIME


def test_parse_special_and_invalid():
    """Test nil, max and invalid parsing."""
    assert parse_uuid(NIL_UUID).is_nil
    assert parse_uuid(MAX_UUID).is_max
    assert parse_uuid("nope").variant == "invalid"

    v4 = parse_uuid("550e8400-e29b-41d4-a716-446655440000")
    assert v4.timestamp is None
    assert v4.node is None


def test_collision_probability():
    """Test the birthday bound."""
    assert calculate_collision_probability(1, "v4").probability == 0

    half = calculate_collision_probability(2 ** 61, "v4")
    assert math.isclose(half.probability, 1 - math.exp(-0.5), rel_tol=1e-9)
    assert "significant" in half.recommendation

    small = calculate_collision_probability(1000, "v4")
    assert small.probability < 1e-15
    assert "negligible" in small.recommendation

    # Fewer random bits make v7 riskier than v4 for the same batch
    assert calculate_collision_probability(10 ** 9, "v7").probability > calculate_collision_probability(
        10 ** 9, "v4"
    ).probability


def test_export_formats():
    """Test txt, csv, json and sql exports."""
    values = ["550e8400-e29b-41d4-a716-446655440000", NIL_UUID]

    assert export_uuids(values, "txt") == "\n".join(values)
    assert export_uuids(values, "csv", column_name="id") == f"id\n{values[0]}\n{values[1]}\n"
    assert export_uuids(values, "csv", include_headers=False).splitlines() == values

    payload = json.loads(
        export_uuids(values, "json", generated_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    )
    assert payload == {"count": 2, "generated_at": "2024-01-01T00:00:00+00:00", "uuids": values}

    assert export_uuids(values, "sql", table_name="users", column_name="id") == (
        "INSERT INTO users (id) VALUES\n"
        f"  ('{values[0]}'),\n"
        f"  ('{values[1]}');\n"
    )


def test_export_rejects_unsafe_identifiers():
    """Test SQL identifiers are validated."""
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        export_uuids([NIL_UUID], "sql", table_name="users; DROP TABLE x")
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_uuids([NIL_UUID], "xml")


def test_export_empty_list():
    """Test exporting no UUIDs never produces a broken INSERT."""
    assert export_uuids([], "sql") == ""
    assert export_uuids([], "txt") == ""
    assert json.loads(export_uuids([], "json"))["count"] == 0
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        export_uuids([], "sql", column_name="id; --")
