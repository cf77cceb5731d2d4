"""Encodly command line.

Usage:
    encodly hash "Hello World" --algorithm SHA-256
    encodly jwt decode eyJhbGciOi... --secret your-256-bit-secret
    encodly uuid generate --version v7 --count 5
    encodly qr https://example.com --output code.png --shape circle
    encodly base64 encode "Hello"
    encodly url auto "a%20b"
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional

from pydantic import BaseModel

from encodly import __version__
from encodly import storage as keys
from encodly.config import get_config
from encodly.crypto.hashing import (
    HASH_ALGORITHMS,
    HashAlgorithm,
    compare_hashes,
    export_hash_results,
    format_hash_display,
    generate_all_hashes,
    generate_file_hash,
    generate_text_hash,
    get_hash_strength,
    get_security_recommendation,
)
from encodly.crypto.jwt_utils import (
    DEFAULT_HEADER,
    HMAC_ALGORITHMS,
    PAYLOAD_TEMPLATE_NAMES,
    JWTError,
    decode_jwt,
    default_payload,
    encode_jwt,
    extract_jwt_token,
    format_json,
    format_time_until_expiry,
    format_timestamp,
    payload_template,
    validate_and_parse_json,
    validate_jwt,
    verify_jwt_signature,
)
from encodly.logging_config import setup_logging
from encodly.schemas import (
    Base64Response,
    ErrorResponse,
    FileWrittenResponse,
    HashComparisonResponse,
    HashListResponse,
    HashResponse,
    JWTDecodeResponse,
    JWTEncodeResponse,
    JWTVerifyResponse,
    QRResponse,
    URLConversionResponse,
    UUIDInfoResponse,
    UUIDListResponse,
    UUIDValidationResponse,
)
from encodly.services.qr_generator import (
    ErrorCorrection,
    QROptions,
    format_from_filename,
    get_qr_code_type,
    get_qr_generator,
)
from encodly.services.qr_renderer import BorderStyle, CenterStyle, ShapeStyle
from encodly.storage import LocalStorage
from encodly.utils import base64_codec, url_codec
from encodly.utils.uuid_utils import (
    EXPORT_FORMATS,
    UUIDVersion,
    calculate_collision_probability,
    export_uuids,
    format_uuid,
    generate_bulk_uuids,
    parse_uuid,
    validate_uuid,
)

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """A problem to report to the user (exit code 1)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


def _emit(args: argparse.Namespace, model: BaseModel, text: str) -> None:
    if args.json:
        print(model.model_dump_json(indent=2))
    else:
        print(text)


def _write_output(path: str, content: Any) -> int:
    mode = "wb" if isinstance(content, bytes) else "w"
    encoding = None if isinstance(content, bytes) else "utf-8"
    with open(path, mode, encoding=encoding) as file_obj:
        written = file_obj.write(content)
    logger.info(f"Wrote {path}")
    return written if isinstance(content, bytes) else len(content.encode("utf-8"))


def _storage(args: argparse.Namespace) -> Optional[LocalStorage]:
    return LocalStorage() if args.remember else None


# ---------------------------------------------------------------------------
# hash
# ---------------------------------------------------------------------------

def _cmd_hash(args: argparse.Namespace) -> int:
    store = _storage(args)
    text = args.text
    if text is None and args.file is None and store is not None:
        text = store.get(keys.HASH_INPUT)
    if text is None and args.file is None:
        raise CommandError("Provide text to hash or --file PATH")

    if args.algorithm == "all":
        algorithms = [info["value"] for info in HASH_ALGORITHMS]
    else:
        algorithms = [HashAlgorithm.parse(args.algorithm)]

    if args.file is not None:
        results = {algorithm: generate_file_hash(args.file, algorithm) for algorithm in algorithms}
        input_type = "file"
    elif len(algorithms) > 1:
        results = generate_all_hashes(text)
        input_type = "text"
    else:
        results = {algorithms[0]: generate_text_hash(text, algorithms[0])}
        input_type = "text"

    if store is not None:
        if text is not None and args.file is None:
            store.set(keys.HASH_INPUT, text)
        store.set(keys.HASH_ALGORITHM, args.algorithm)

    if args.export:
        _write_output(args.export, export_hash_results(results, text if text is not None else args.file))

    if args.compare is not None:
        algorithm = algorithms[0]
        comparison = compare_hashes(results[algorithm], args.compare, algorithm)
        _emit(
            args,
            HashComparisonResponse(
                hash1=comparison.hash1,
                hash2=comparison.hash2,
                algorithm=comparison.algorithm,
                matches=comparison.matches,
            ),
            "Hashes match" if comparison.matches else "Hashes do not match",
        )
        return 0 if comparison.matches else 1

    items = [
        HashResponse(
            algorithm=algorithm.value,
            hash=format_hash_display(digest, args.format),
            input_type=input_type,
            strength=get_hash_strength(algorithm),
            recommendation=get_security_recommendation(algorithm),
        )
        for algorithm, digest in results.items()
    ]
    if len(items) == 1:
        _emit(args, items[0], items[0].hash)
    else:
        _emit(
            args,
            HashListResponse(items=items),
            "\n".join(f"{item.algorithm}: {item.hash}" for item in items),
        )
    return 0


# ---------------------------------------------------------------------------
# jwt
# ---------------------------------------------------------------------------

def _parse_json_argument(value: Optional[str], label: str) -> Any:
    if value is None:
        return None
    parsed = validate_and_parse_json(value)
    if not parsed.is_valid:
        raise CommandError(f"Invalid {label} JSON: {parsed.error}", code="INVALID_JSON")
    return parsed.data


def _cmd_jwt_decode(args: argparse.Namespace) -> int:
    store = _storage(args)
    token = extract_jwt_token(args.token)
    decoded = decode_jwt(token)
    if not decoded.is_valid:
        raise CommandError(decoded.error, code="JWT_ERROR")

    if store is not None:
        store.set(keys.JWT_DECODER_TOKEN, token)

    validation = validate_jwt(decoded)
    verified = verify_jwt_signature(token, args.secret) if args.secret else None

    until = None
    if validation.time_until_expiry is not None:
        until = format_time_until_expiry(validation.time_until_expiry)

    lines = [
        "Header:",
        format_json(decoded.header),
        "",
        "Payload:",
        format_json(decoded.payload),
        "",
        f"Signature: {decoded.signature}",
        f"Algorithm: {validation.algorithm or 'unknown'}",
    ]
    if validation.is_expired is not None:
        exp = decoded.payload["exp"]
        lines.append(f"Expires: {format_timestamp(exp)} ({until if not validation.is_expired else 'Expired'})")
    if verified is not None:
        lines.append(f"Signature verified: {'yes' if verified else 'no'}")

    _emit(
        args,
        JWTDecodeResponse(
            header=decoded.header,
            payload=decoded.payload,
            signature=decoded.signature,
            is_valid=decoded.is_valid,
            is_expired=validation.is_expired,
            expiration_time=validation.expiration_time,
            time_until_expiry=until,
            algorithm=validation.algorithm,
            is_signature_verified=verified,
        ),
        "\n".join(lines),
    )
    return 0


def _cmd_jwt_encode(args: argparse.Namespace) -> int:
    store = _storage(args)
    secret = args.secret
    algorithm = args.algorithm
    if store is not None:
        secret = secret or store.get(keys.JWT_ENCODER_SECRET)
        algorithm = algorithm or store.get(keys.JWT_ENCODER_ALGORITHM)
    algorithm = algorithm or "HS256"

    if args.template:
        payload = payload_template(args.template)
    elif args.payload is not None:
        payload = _parse_json_argument(args.payload, "payload")
    else:
        payload = default_payload()

    header = _parse_json_argument(args.header, "header")
    if header is None:
        header = dict(DEFAULT_HEADER)

    token = encode_jwt(header, payload, secret or "", algorithm)

    if store is not None:
        store.set(keys.JWT_ENCODER_SECRET, secret)
        store.set(keys.JWT_ENCODER_ALGORITHM, algorithm)

    _emit(args, JWTEncodeResponse(token=token, algorithm=algorithm), token)
    return 0


def _cmd_jwt_verify(args: argparse.Namespace) -> int:
    token = extract_jwt_token(args.token)
    verified = verify_jwt_signature(token, args.secret)
    _emit(
        args,
        JWTVerifyResponse(token=token, is_signature_verified=verified),
        "Signature verified" if verified else "Invalid signature",
    )
    return 0 if verified else 1


# ---------------------------------------------------------------------------
# uuid
# ---------------------------------------------------------------------------

def _cmd_uuid_generate(args: argparse.Namespace) -> int:
    store = _storage(args)
    version = args.version
    if version is None and store is not None:
        version = store.get(keys.UUID_VERSION)
    version = UUIDVersion(version or UUIDVersion.V4)

    max_count = get_config().UUID_MAX_BULK_COUNT
    uuids = generate_bulk_uuids(version, args.count, args.namespace, args.name, max_count=max_count)
    uuids = [format_uuid(value, args.format) for value in uuids]

    if store is not None:
        store.set(keys.UUID_VERSION, version.value)

    if args.export:
        content = export_uuids(uuids, args.export, table_name=args.table, column_name=args.column)
        if args.output:
            written = _write_output(args.output, content)
            _emit(
                args,
                FileWrittenResponse(path=args.output, format=args.export, bytes_written=written),
                f"Wrote {len(uuids)} UUIDs to {args.output}",
            )
        else:
            print(content)
        return 0

    estimate = calculate_collision_probability(len(uuids), version)
    _emit(
        args,
        UUIDListResponse(
            version=version.value,
            count=len(uuids),
            uuids=uuids,
            collision_probability=estimate.probability,
            recommendation=estimate.recommendation,
        ),
        "\n".join(uuids),
    )
    return 0


def _cmd_uuid_validate(args: argparse.Namespace) -> int:
    validation = validate_uuid(args.value)
    if validation.is_valid:
        text = f"Valid UUID (version {validation.version}, {validation.format} format)"
    else:
        text = "; ".join(validation.errors)
    _emit(
        args,
        UUIDValidationResponse(
            value=args.value,
            is_valid=validation.is_valid,
            version=validation.version,
            format=validation.format,
            errors=validation.errors,
        ),
        text,
    )
    return 0 if validation.is_valid else 1


def _cmd_uuid_parse(args: argparse.Namespace) -> int:
    info = parse_uuid(args.value)
    if info.variant == "invalid":
        raise CommandError("Invalid UUID format", code="INVALID_UUID")

    lines = [
        f"Version: {info.version}",
        f"Variant: {info.variant}",
    ]
    if info.timestamp:
        lines.append(f"Timestamp: 0x{info.timestamp}")
    if info.created_at:
        lines.append(f"Created: {info.created_at.isoformat()}")
    if info.clock_sequence:
        lines.append(f"Clock sequence: 0x{info.clock_sequence}")
    if info.node:
        lines.append(f"Node: {info.node}")

    _emit(
        args,
        UUIDInfoResponse(
            value=args.value,
            version=info.version,
            variant=info.variant,
            is_nil=info.is_nil,
            is_max=info.is_max,
            timestamp=info.timestamp,
            clock_sequence=info.clock_sequence,
            node=info.node,
            created_at=info.created_at,
        ),
        "\n".join(lines),
    )
    return 0


# ---------------------------------------------------------------------------
# qr
# ---------------------------------------------------------------------------

def _qr_options(args: argparse.Namespace, store: Optional[LocalStorage]) -> QROptions:
    values: dict[str, Any] = {}
    if store is not None:
        values.update(store.get(keys.QR_OPTIONS) or {})

    overrides = {
        "size": args.size,
        "margin": args.margin,
        "error_correction": args.level,
        "dark_color": args.dark,
        "light_color": args.light,
        "shape_style": args.shape,
        "border_style": args.border,
        "center_style": args.center,
    }
    values.update({name: value for name, value in overrides.items() if value is not None})
    if args.no_branding:
        values["show_branding"] = False
    values.setdefault("size", get_config().QR_DEFAULT_SIZE)
    return QROptions.from_dict(values)


def _cmd_qr(args: argparse.Namespace) -> int:
    store = _storage(args)
    options = _qr_options(args, store)
    output_format = format_from_filename(args.output)

    content = get_qr_generator().generate(args.text, options, output_format)
    written = _write_output(args.output, content)

    if store is not None:
        store.set(keys.QR_OPTIONS, options.to_dict())

    _emit(
        args,
        QRResponse(
            path=args.output,
            format=output_format.value,
            content_type=get_qr_code_type(args.text),
            bytes_written=written,
            options=options.to_dict(),
        ),
        f"Wrote {output_format.value.upper()} QR code to {args.output}",
    )
    return 0


# ---------------------------------------------------------------------------
# base64
# ---------------------------------------------------------------------------

def _cmd_base64(args: argparse.Namespace) -> int:
    store = _storage(args)
    alphabet = args.alphabet
    if alphabet is None and store is not None:
        alphabet = store.get(keys.BASE64_ALPHABET)
    options = base64_codec.Base64Options(alphabet=alphabet or "standard", chunked=args.chunked)

    if args.operation == "encode":
        if args.file is not None:
            result = base64_codec.encode_file(args.file, options)
        elif args.text is not None:
            result = base64_codec.encode_text(args.text, options)
        else:
            raise CommandError("Provide text to encode or --file PATH")
        output = result.base64
    else:
        source = args.text
        if args.file is not None:
            with open(args.file, "r", encoding="utf-8") as file_obj:
                source = file_obj.read()
        if source is None:
            raise CommandError("Provide Base64 text to decode or --file PATH")
        result = base64_codec.decode(source, options)
        output = result.text if result.text is not None else f"<{result.size} bytes of {result.mime_type}>"

    if store is not None:
        store.set(keys.BASE64_ALPHABET, options.alphabet)

    if args.output:
        if args.operation == "decode":
            _write_output(args.output, result.data)
        else:
            _write_output(args.output, output)

    _emit(
        args,
        Base64Response(
            operation=args.operation,
            mime_type=result.mime_type,
            size=result.size,
            is_image=result.is_image,
            base64=result.base64,
            text=result.text,
            formats=result.formats,
        ),
        output,
    )
    return 0


# ---------------------------------------------------------------------------
# url
# ---------------------------------------------------------------------------

def _cmd_url(args: argparse.Namespace) -> int:
    store = _storage(args)
    operation = None if args.operation == "auto" else args.operation
    result = url_codec.process_input(args.text, operation)

    if store is not None:
        store.set(keys.URL_INPUT, args.text)
        store.set(keys.URL_AUTO_CONVERT, args.operation == "auto")

    if result.error:
        raise CommandError(result.error, code="URL_ERROR")

    _emit(
        args,
        URLConversionResponse(input=args.text, output=result.output, operation=result.operation),
        result.output,
    )
    return 0


# ---------------------------------------------------------------------------
# parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="encodly", description="Encoding, hashing and identifier tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--json", action="store_true", help="Print structured JSON output")
    parser.add_argument("--remember", action="store_true", help="Persist inputs and settings to local storage")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # hash
    hash_parser = subparsers.add_parser("hash", help="Generate SHA digests")
    hash_parser.add_argument("text", nargs="?", help="Text to hash")
    hash_parser.add_argument("--file", help="Hash a file instead of text")
    hash_parser.add_argument(
        "--algorithm",
        default="SHA-256",
        choices=[a.value for a in HashAlgorithm] + ["all"],
        help="Digest algorithm",
    )
    hash_parser.add_argument("--format", default="default", choices=["default", "spaced", "chunked"])
    hash_parser.add_argument("--compare", metavar="HASH", help="Compare against an expected digest")
    hash_parser.add_argument("--export", metavar="PATH", help="Write a plain-text report")
    hash_parser.set_defaults(handler=_cmd_hash)

    # jwt
    jwt_parser = subparsers.add_parser("jwt", help="Decode, encode and verify JWTs")
    jwt_sub = jwt_parser.add_subparsers(dest="jwt_command", required=True)

    decode_parser = jwt_sub.add_parser("decode", help="Decode a token")
    decode_parser.add_argument("token")
    decode_parser.add_argument("--secret", help="Verify the HMAC signature with this secret")
    decode_parser.set_defaults(handler=_cmd_jwt_decode)

    encode_parser = jwt_sub.add_parser("encode", help="Sign a token")
    encode_parser.add_argument("--payload", help="Payload JSON object")
    encode_parser.add_argument("--template", choices=sorted(PAYLOAD_TEMPLATE_NAMES), help="Use a preset payload")
    encode_parser.add_argument("--header", help="Header JSON object")
    encode_parser.add_argument("--secret", help="HMAC secret")
    encode_parser.add_argument("--algorithm", choices=list(HMAC_ALGORITHMS))
    encode_parser.set_defaults(handler=_cmd_jwt_encode)

    verify_parser = jwt_sub.add_parser("verify", help="Verify a token's signature")
    verify_parser.add_argument("token")
    verify_parser.add_argument("--secret", required=True)
    verify_parser.set_defaults(handler=_cmd_jwt_verify)

    # uuid
    uuid_parser = subparsers.add_parser("uuid", help="Generate, validate and parse UUIDs")
    uuid_sub = uuid_parser.add_subparsers(dest="uuid_command", required=True)

    generate_parser = uuid_sub.add_parser("generate", help="Generate UUIDs")
    generate_parser.add_argument("--version", dest="version", choices=[v.value for v in UUIDVersion])
    generate_parser.add_argument("--count", type=int, default=1)
    generate_parser.add_argument("--namespace", help="Namespace UUID or DNS, URL, OID, X500 (v3/v5)")
    generate_parser.add_argument("--name", help="Name to hash (v3/v5)")
    generate_parser.add_argument("--format", default="standard", choices=["standard", "compact", "uppercase"])
    generate_parser.add_argument("--export", choices=EXPORT_FORMATS, help="Export format")
    generate_parser.add_argument("--output", metavar="PATH", help="Write the export to a file")
    generate_parser.add_argument("--table", default="uuids", help="SQL table name")
    generate_parser.add_argument("--column", default="uuid", help="CSV header / SQL column name")
    generate_parser.set_defaults(handler=_cmd_uuid_generate)

    validate_parser = uuid_sub.add_parser("validate", help="Validate a UUID")
    validate_parser.add_argument("value")
    validate_parser.set_defaults(handler=_cmd_uuid_validate)

    parse_parser = uuid_sub.add_parser("parse", help="Show the fields of a UUID")
    parse_parser.add_argument("value")
    parse_parser.set_defaults(handler=_cmd_uuid_parse)

    # qr
    qr_parser = subparsers.add_parser("qr", help="Render a styled QR code")
    qr_parser.add_argument("text")
    qr_parser.add_argument("--output", required=True, metavar="PATH", help="Output file (.png, .svg or .pdf)")
    qr_parser.add_argument("--size", type=int)
    qr_parser.add_argument("--margin", type=int)
    qr_parser.add_argument("--level", choices=[e.value for e in ErrorCorrection])
    qr_parser.add_argument("--dark", help="Foreground color")
    qr_parser.add_argument("--light", help="Background color")
    qr_parser.add_argument("--shape", choices=[s.value for s in ShapeStyle])
    qr_parser.add_argument("--border", choices=[s.value for s in BorderStyle])
    qr_parser.add_argument("--center", choices=[s.value for s in CenterStyle])
    qr_parser.add_argument("--no-branding", action="store_true")
    qr_parser.set_defaults(handler=_cmd_qr)

    # base64
    base64_parser = subparsers.add_parser("base64", help="Base64 encode or decode")
    base64_parser.add_argument("operation", choices=["encode", "decode"])
    base64_parser.add_argument("text", nargs="?")
    base64_parser.add_argument("--file", help="Read input from a file")
    base64_parser.add_argument("--alphabet", help="standard, url or a custom 64-character alphabet")
    base64_parser.add_argument("--chunked", action="store_true", help="Wrap output at 76 columns")
    base64_parser.add_argument("--output", metavar="PATH", help="Write the result to a file")
    base64_parser.set_defaults(handler=_cmd_base64)

    # url
    url_parser = subparsers.add_parser("url", help="URL component encode or decode")
    url_parser.add_argument("operation", choices=["encode", "decode", "auto"])
    url_parser.add_argument("text")
    url_parser.set_defaults(handler=_cmd_url)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run the command line and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    level = None
    if args.verbose == 1:
        level = "INFO"
    elif args.verbose >= 2:
        level = "DEBUG"
    setup_logging(config, level)

    try:
        return args.handler(args)
    except (CommandError, JWTError, ValueError, OverflowError, RuntimeError, OSError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        code = getattr(e, "code", None) or type(e).__name__
        if args.json:
            print(ErrorResponse(error=str(e), code=code).model_dump_json(indent=2), file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
