"""UUID generation, validation, parsing and export.

Versions 1, 3, 4 and 5 come straight from the standard library. Version 6 is
built by reordering the timestamp fields of a fresh v1 UUID so that the hex
text sorts by creation time, and version 7 packs a 48-bit Unix millisecond
timestamp in front of random bytes.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import math
import os
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from encodly.config import Config

logger = logging.getLogger(__name__)


class UUIDVersion(str, Enum):
    """Generatable UUID versions."""

    V1 = "v1"
    V3 = "v3"
    V4 = "v4"
    V5 = "v5"
    V6 = "v6"
    V7 = "v7"

    @property
    def number(self) -> int:
        return int(self.value[1:])


@dataclass(slots=True, frozen=True)
class UUIDVersionInfo:
    value: UUIDVersion
    label: str
    description: str
    use_case: str


UUID_VERSIONS = [
    UUIDVersionInfo(
        UUIDVersion.V4,
        "UUID v4 (Random)",
        "Random UUID using cryptographically secure random numbers",
        "Most common, suitable for general purpose use",
    ),
    UUIDVersionInfo(
        UUIDVersion.V1,
        "UUID v1 (Timestamp)",
        "Timestamp-based UUID with MAC address",
        "When you need time-based ordering",
    ),
    UUIDVersionInfo(
        UUIDVersion.V3,
        "UUID v3 (MD5 Namespace)",
        "Deterministic UUID from a namespace and name using MD5",
        "Stable identifiers derived from names (legacy, prefer v5)",
    ),
    UUIDVersionInfo(
        UUIDVersion.V5,
        "UUID v5 (SHA-1 Namespace)",
        "Deterministic UUID from a namespace and name using SHA-1",
        "Stable identifiers derived from names",
    ),
    UUIDVersionInfo(
        UUIDVersion.V6,
        "UUID v6 (Reordered Timestamp)",
        "v1 fields reordered so the text sorts by creation time",
        "Time-ordered keys that stay compatible with v1 tooling",
    ),
    UUIDVersionInfo(
        UUIDVersion.V7,
        "UUID v7 (Unix Epoch Time)",
        "Millisecond Unix timestamp followed by random bits",
        "Database primary keys with good index locality",
    ),
]

NIL_UUID = "00000000-0000-0000-0000-000000000000"
MAX_UUID = "ffffffff-ffff-ffff-ffff-ffffffffffff"

PREDEFINED_NAMESPACES = {
    "DNS": str(uuid.NAMESPACE_DNS),
    "URL": str(uuid.NAMESPACE_URL),
    "OID": str(uuid.NAMESPACE_OID),
    "X500": str(uuid.NAMESPACE_X500),
}

# 100ns intervals between 1582-10-15 and 1970-01-01
GREGORIAN_OFFSET = 0x01B21DD213814000

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_STANDARD_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-7][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_COMPACT_PATTERN = re.compile(
    r"^([0-9a-f]{8})([0-9a-f]{4})([0-9a-f]{4})([0-9a-f]{4})([0-9a-f]{12})$",
    re.IGNORECASE,
)
_SQL_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Bits that must collide for two UUIDs of a version to be equal when
# generated independently at the same instant
_COLLISION_BITS = {
    UUIDVersion.V1: 62,
    UUIDVersion.V3: 122,
    UUIDVersion.V4: 122,
    UUIDVersion.V5: 122,
    UUIDVersion.V6: 62,
    UUIDVersion.V7: 74,
}


@dataclass(slots=True)
class UUIDValidation:
    is_valid: bool
    version: Optional[int]
    format: str  # standard, compact or invalid
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class UUIDInfo:
    version: Optional[int]
    variant: str
    is_nil: bool
    is_max: bool
    timestamp: Optional[str] = None
    clock_sequence: Optional[str] = None
    node: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class CollisionEstimate:
    count: int
    version: UUIDVersion
    probability: float
    recommendation: str


def _hyphenate(hex32: str) -> str:
    return f"{hex32[0:8]}-{hex32[8:12]}-{hex32[12:16]}-{hex32[16:20]}-{hex32[20:32]}"


def _resolve_namespace(namespace: Optional[str]) -> uuid.UUID:
    if not namespace:
        raise ValueError("Namespace is required for v3 and v5 UUIDs")
    value = PREDEFINED_NAMESPACES.get(namespace.upper(), namespace)
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValueError(f"Invalid namespace UUID: {namespace}") from None


def uuid6() -> str:
    """Generate a v6 UUID from a fresh v1 UUID."""
    hex32 = uuid.uuid1().hex
    time_low, time_mid, time_high = hex32[0:8], hex32[8:12], hex32[13:16]
    clock_and_node = hex32[16:32]

    timestamp = time_high + time_mid + time_low  # 60 bits, most significant first
    return _hyphenate(timestamp[0:8] + timestamp[8:12] + "6" + timestamp[12:15] + clock_and_node)


def uuid7(unix_ms: Optional[int] = None) -> str:
    """
    Generate a v7 UUID.

    Args:
        unix_ms: Timestamp in Unix milliseconds (defaults to the clock)
    """
    unix_ms = time.time_ns() // 1_000_000 if unix_ms is None else unix_ms
    raw = bytearray(unix_ms.to_bytes(6, "big") + os.urandom(10))
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def generate_uuid(
    version: Union[str, UUIDVersion] = UUIDVersion.V4,
    namespace: Optional[str] = None,
    name: Optional[str] = None,
) -> str:
    """
    Generate a single UUID.

    Args:
        version: v1, v3, v4, v5, v6 or v7
        namespace: Namespace UUID or predefined key (DNS, URL, OID, X500); v3/v5 only
        name: Name to hash; v3/v5 only

    Returns:
        Lowercase hyphenated UUID

    Raises:
        ValueError: For unknown versions or missing v3/v5 inputs
    """
    version = UUIDVersion(version)

    if version == UUIDVersion.V1:
        return str(uuid.uuid1())
    if version == UUIDVersion.V4:
        return str(uuid.uuid4())
    if version == UUIDVersion.V6:
        return uuid6()
    if version == UUIDVersion.V7:
        return uuid7()

    if not name:
        raise ValueError("Name is required for v3 and v5 UUIDs")
    ns = _resolve_namespace(namespace)
    if version == UUIDVersion.V3:
        return str(uuid.uuid3(ns, name))
    return str(uuid.uuid5(ns, name))


def generate_bulk_uuids(
    version: Union[str, UUIDVersion],
    count: int,
    namespace: Optional[str] = None,
    name: Optional[str] = None,
    max_count: int = Config.UUID_MAX_BULK_COUNT,
) -> list[str]:
    """
    Generate several UUIDs of one version.

    Namespace UUIDs are deterministic, so a v3/v5 batch repeats one value.

    Raises:
        ValueError: If count is outside 1..max_count
    """
    if count < 1 or count > max_count:
        raise ValueError(f"Count must be between 1 and {max_count}")
    return [generate_uuid(version, namespace, name) for _ in range(count)]


def validate_uuid(value: Optional[str]) -> UUIDValidation:
    """
    Validate a UUID in standard or compact (no hyphens) form.

    Versions 1 through 7 with the RFC variant are accepted, as are the nil
    and max UUIDs.
    """
    if not value or not isinstance(value, str):
        return UUIDValidation(
            is_valid=False,
            version=None,
            format="invalid",
            errors=["UUID is required and must be a string"],
        )

    trimmed = value.strip()
    if _is_valid_standard(trimmed):
        return UUIDValidation(is_valid=True, version=_version_nibble(trimmed), format="standard")

    match = _COMPACT_PATTERN.match(trimmed)
    if match:
        formatted = "-".join(match.groups())
        if _is_valid_standard(formatted):
            return UUIDValidation(is_valid=True, version=_version_nibble(formatted), format="compact")

    return UUIDValidation(is_valid=False, version=None, format="invalid", errors=["Invalid UUID format"])


def _is_valid_standard(value: str) -> bool:
    lowered = value.lower()
    return lowered in (NIL_UUID, MAX_UUID) or bool(_STANDARD_PATTERN.match(value))


def _version_nibble(standard: str) -> int:
    return int(standard[14], 16)


def format_uuid(value: str, fmt: str = "standard") -> str:
    """
    Reformat a valid UUID.

    Args:
        value: UUID in standard or compact form
        fmt: standard, compact, uppercase or lowercase

    Returns:
        Reformatted UUID, or the input unchanged if it is not a valid UUID
    """
    validation = validate_uuid(value)
    if not validation.is_valid:
        return value

    formatted = value.strip()
    if validation.format == "compact":
        formatted = _hyphenate(formatted)

    if fmt == "compact":
        return formatted.replace("-", "").lower()
    if fmt == "uppercase":
        return formatted.upper()
    return formatted.lower()


def format_uuid_custom(
    value: str,
    case: str = "lower",
    separator: str = "-",
    prefix: str = "",
    suffix: str = "",
    remove_separators: bool = False,
) -> str:
    """Apply case, separator and prefix/suffix options to a UUID."""
    standard = format_uuid(value, "standard")
    groups = standard.split("-")
    body = "".join(groups) if remove_separators else separator.join(groups)
    body = body.upper() if case == "upper" else body.lower()
    return f"{prefix}{body}{suffix}"


def _variant_label(nibble: int) -> str:
    if nibble & 0x8 == 0:
        return "NCS backward compatibility"
    if nibble & 0xC == 0x8:
        return "RFC 4122"
    if nibble & 0xE == 0xC:
        return "Microsoft GUID"
    return "Reserved for future definition"


def parse_uuid(value: str) -> UUIDInfo:
    """
    Break a UUID into its fields.

    Time-based versions (1, 6, 7) also get the raw timestamp hex and the
    decoded creation time; v1 and v6 additionally expose clock sequence and
    node.
    """
    validation = validate_uuid(value)
    if not validation.is_valid:
        return UUIDInfo(version=None, variant="invalid", is_nil=False, is_max=False)

    standard = format_uuid(value, "standard")
    is_nil = standard == NIL_UUID
    is_max = standard == MAX_UUID
    if is_nil or is_max:
        return UUIDInfo(
            version=validation.version,
            variant="nil" if is_nil else "max",
            is_nil=is_nil,
            is_max=is_max,
        )

    hex32 = standard.replace("-", "")
    version = int(hex32[12], 16)
    info = UUIDInfo(
        version=version,
        variant=_variant_label(int(hex32[16], 16)),
        is_nil=False,
        is_max=False,
    )

    if version == 1:
        info.timestamp = hex32[13:16] + hex32[8:12] + hex32[0:8]
    elif version == 6:
        info.timestamp = hex32[0:12] + hex32[13:16]
    elif version == 7:
        info.timestamp = hex32[0:12]

    if version in (1, 6):
        info.clock_sequence = hex32[16:20]
        info.node = hex32[20:32]

    info.created_at = extract_timestamp(standard)
    return info


def extract_timestamp(value: str) -> Optional[datetime]:
    """
    Decode the creation time of a v1, v6 or v7 UUID.

    Returns:
        UTC datetime, or None for other versions and invalid input
    """
    validation = validate_uuid(value)
    if not validation.is_valid:
        return None

    hex32 = format_uuid(value, "compact")
    version = validation.version

    try:
        if version in (1, 6):
            if version == 1:
                ticks = int(hex32[13:16] + hex32[8:12] + hex32[0:8], 16)
            else:
                ticks = int(hex32[0:12] + hex32[13:16], 16)
            return _UNIX_EPOCH + timedelta(microseconds=(ticks - GREGORIAN_OFFSET) // 10)
        if version == 7:
            return _UNIX_EPOCH + timedelta(milliseconds=int(hex32[0:12], 16))
    except OverflowError:
        logger.debug(f"Timestamp out of range for UUID {value}")
    return None


def calculate_collision_probability(
    count: int, version: Union[str, UUIDVersion] = UUIDVersion.V4
) -> CollisionEstimate:
    """
    Estimate the chance of a duplicate among ``count`` UUIDs.

    Uses the birthday bound P = 1 - e^(-n^2 / 2N), where N is the number of
    values the version can take for UUIDs generated at the same instant.
    """
    version = UUIDVersion(version)
    space = 2.0 ** _COLLISION_BITS[version]
    n = max(count, 0)
    probability = -math.expm1(-(n * n) / (2.0 * space))

    if probability < 1e-15:
        recommendation = "Collision risk is negligible for this batch size."
    elif probability < 1e-6:
        recommendation = "Collision risk is extremely low."
    elif probability < 1e-3:
        recommendation = "Collision risk is low but measurable; check for duplicates if uniqueness is critical."
    else:
        recommendation = "Collision risk is significant; use UUID v4 or v7 and enforce uniqueness."

    return CollisionEstimate(count=count, version=version, probability=probability, recommendation=recommendation)


EXPORT_FORMATS = ("txt", "csv", "json", "sql")


def export_uuids(
    uuids: list[str],
    fmt: str = "txt",
    table_name: str = "uuids",
    column_name: str = "uuid",
    include_headers: bool = True,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Serialize UUIDs for download.

    SQL export of an empty list is an empty string.

    Args:
        uuids: UUID strings
        fmt: txt, csv, json or sql
        table_name: SQL table name
        column_name: CSV header / SQL column name
        include_headers: Write the CSV header row
        generated_at: JSON metadata timestamp (defaults to now, UTC)

    Raises:
        ValueError: For an unknown format or an unsafe SQL identifier
    """
    if fmt == "txt":
        return "\n".join(uuids)

    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        if include_headers:
            writer.writerow([column_name])
        writer.writerows([value] for value in uuids)
        return buffer.getvalue()

    if fmt == "json":
        generated_at = generated_at or datetime.now(timezone.utc)
        return json.dumps(
            {"count": len(uuids), "generated_at": generated_at.isoformat(), "uuids": uuids},
            indent=2,
        )

    if fmt == "sql":
        for identifier in (table_name, column_name):
            if not _SQL_IDENTIFIER.match(identifier):
                raise ValueError(f"Invalid SQL identifier: {identifier}")
        if not uuids:
            return ""
        rows = ",\n".join("  ('{}')".format(value.replace("'", "''")) for value in uuids)
        return f"INSERT INTO {table_name} ({column_name}) VALUES\n{rows};\n"

    raise ValueError(f"Unsupported export format: {fmt}")


def generate_test_uuids() -> list[str]:
    return [
        generate_uuid(UUIDVersion.V4),
        generate_uuid(UUIDVersion.V1),
        NIL_UUID,
        MAX_UUID,
        "550e8400-e29b-41d4-a716-446655440000",  # v4
        "6ba7b810-9dad-11d1-80b4-00c04fd430c8",  # v1
    ]
