#!/usr/bin/env python3
"""
totp_cli.py — command-line front end for the TOTP engine.

Subcommands:
- generate : print the code for the current time step
- validate : check a code against the ±window steps around now
- hotp     : raw RFC 4226 code for an explicit counter
- watch    : print each new code in real time until Ctrl+C

The secret is taken as text by default (UTF-16LE, like the library's str
overloads); --hex and --base32 pass raw key bytes instead.
"""

from datetime import datetime, timezone
from typing import List, Optional
import argparse
import base64
import binascii
import logging
import sys
import time

from totp_core.totp_engine import (
    DEFAULT_TIME_STEP,
    DEFAULT_WINDOW,
    TotpEngine,
    format_code,
    hotp,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_CODE = 1
EXIT_USAGE = 2


def decode_secret(args):
    """Turn --secret into the str or bytes the engine expects."""
    if args.hex:
        try:
            return bytes.fromhex(args.secret)
        except ValueError as e:
            raise ValueError("Invalid hex secret") from e
    if args.base32:
        secret = args.secret.replace(" ", "")
        try:
            return base64.b32decode(secret + "=" * (-len(secret) % 8), casefold=True)
        except binascii.Error as e:
            raise ValueError("Invalid Base32 secret") from e
    return args.secret


def parse_instant(value: str) -> datetime:
    """ISO-8601 instant for --at; a trailing Z and naive values mean UTC."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        instant = datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 instant: {value!r}") from e
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def build_engine(args) -> TotpEngine:
    clock = None
    if args.at is not None:
        frozen = args.at
        clock = lambda: frozen  # noqa: E731
    return TotpEngine(time_step=args.step, window=args.window, clock=clock)


# --- CLI command handlers ---
def cmd_generate(args) -> int:
    engine = build_engine(args)
    code = engine.generate_code(decode_secret(args), args.modifier)
    print(f"TOTP: {format_code(code)}  (valid ~{engine.seconds_remaining()}s)")
    return EXIT_OK


def cmd_validate(args) -> int:
    engine = build_engine(args)
    if engine.validate_code(decode_secret(args), args.code, args.modifier):
        print("[+] code is VALID")
        return EXIT_OK
    print("[-] code is INVALID")
    return EXIT_INVALID_CODE


def cmd_hotp(args) -> int:
    code = hotp(decode_secret(args), args.counter, args.modifier)
    print(f"HOTP(counter={args.counter}): {format_code(code)}")
    return EXIT_OK


def cmd_watch(args) -> int:
    engine = build_engine(args)
    secret = decode_secret(args)
    print("Press Ctrl+C to quit. Generating TOTP in real time...\n")
    last_code = None
    try:
        while True:
            code = format_code(engine.generate_code(secret, args.modifier))
            remaining = engine.seconds_remaining()
            if code != last_code:
                print(f"TOTP: {code}  (valid ~{remaining:3d}s)")
                last_code = code
            else:
                print(f".. {remaining:3d}s left", end="\r", flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return EXIT_OK


# --- Argparse builder ---
def _add_secret_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--secret", required=True, help="Shared secret (text unless --hex/--base32)")
    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument("--hex", action="store_true", help="Secret is hex-encoded key bytes")
    fmt.add_argument("--base32", action="store_true", help="Secret is Base32-encoded key bytes")
    p.add_argument("--modifier", default=None, help="Optional modifier separating code sequences")


def _add_time_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--step", type=float, default=DEFAULT_TIME_STEP.total_seconds(),
                   help="Time step in seconds (default: %(default)s)")
    p.add_argument("--window", type=int, default=DEFAULT_WINDOW,
                   help="Accepted steps on either side of now (default: %(default)s)")
    p.add_argument("--at", type=parse_instant, default=None,
                   help="Evaluate at this ISO-8601 instant instead of now")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="totp-engine",
                                description="TOTP (RFC 6238, HMAC-SHA1) code generator and validator.")
    p.add_argument("--verbose", action="store_true", help="Debug logging to stderr")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=None)

    pg = sub.add_parser("generate", help="Print the code for the current time step")
    _add_secret_arguments(pg)
    _add_time_arguments(pg)
    pg.set_defaults(func=cmd_generate)

    pv = sub.add_parser("validate", help="Validate a code against the current window")
    _add_secret_arguments(pv)
    _add_time_arguments(pv)
    pv.add_argument("--code", type=int, required=True, help="Code to check (leading zeros optional)")
    pv.set_defaults(func=cmd_validate)

    ph = sub.add_parser("hotp", help="HOTP code for a specific counter (RFC 4226)")
    _add_secret_arguments(ph)
    ph.add_argument("--counter", type=int, required=True)
    ph.set_defaults(func=cmd_hotp)

    pw = sub.add_parser("watch", help="Show the TOTP code in real time")
    _add_secret_arguments(pw)
    _add_time_arguments(pw)
    pw.set_defaults(func=cmd_watch)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if args.func is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        return args.func(args)
    except ValueError as e:  # includes InvalidArgumentError and UnicodeEncodeError
        logger.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"[!] {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
