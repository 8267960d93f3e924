"""
Command-line minting and checking of license codes.

    fence-keygen generate --email test@example.com --type std
    fence-keygen verify FENCE-...
"""
import argparse
import sys
import time

from config import get_settings
from errors import LicenseDecodeError
from license_codec import LicenseType, decode, encode, serialize_payload


def _secret(args) -> str:
    secret = args.secret or get_settings().license_secret_key
    if not secret:
        raise SystemExit("LICENSE_SECRET_KEY is not configured (use --secret)")
    return secret


def cmd_generate(args) -> int:
    issued_at = args.issued_at if args.issued_at is not None else int(time.time())
    code = encode(args.email, args.type, _secret(args), issued_at)
    print(code)
    print(f"Payload: {serialize_payload(args.email, args.type, issued_at)}")
    return 0


def cmd_verify(args) -> int:
    try:
        payload = decode(args.code, _secret(args))
    except LicenseDecodeError as exc:
        print(f"invalid: {exc.kind.value} ({exc})", file=sys.stderr)
        return 1
    print(f"valid: email={payload.email} type={payload.license_type.value} issued_at={payload.issued_at}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fence-keygen", description="Generate and verify Fence license codes")
    parser.add_argument("--secret", help="HMAC secret (default: LICENSE_SECRET_KEY)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Mint a license code")
    gen.add_argument("--email", required=True)
    gen.add_argument("--type", choices=[t.value for t in LicenseType], default=LicenseType.STANDARD.value)
    gen.add_argument("--issued-at", type=int, default=None, help="Unix seconds (default: now)")
    gen.set_defaults(func=cmd_generate)

    ver = sub.add_parser("verify", help="Check a license code")
    ver.add_argument("code")
    ver.set_defaults(func=cmd_verify)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
