"""
totp_core package
=================

Time-based One-Time Passwords (RFC 6238) on top of HOTP (RFC 4226),
with an optional modifier to derive independent code sequences from the
same secret.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP:
  code = Truncate(HMAC-SHA1(key=secret, msg=counter [+ modifier])) mod 10^6
- TOTP:
  HOTP with counter = floor((now - epoch) / step), step = 3 minutes.
- Validation accepts the current step and 2 steps on either side
  (up to ±6 minutes of clock skew).

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from totp_core import generate_code, validate_code, format_code
>>> code = generate_code(b"shared-secret", modifier="email-change")
>>> validate_code(b"shared-secret", code, modifier="email-change")
True
>>> len(format_code(code))
6

Text secrets are encoded as UTF-16LE, raw bytes are used as is, so
``generate_code("abc")`` and ``generate_code(b"abc")`` differ.
"""

from totp_core.exceptions import InvalidArgumentError
from totp_core.totp_engine import (
    CODE_MODULUS,
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    DEFAULT_WINDOW,
    TotpEngine,
    format_code,
    generate_code,
    hotp,
    validate_code,
)

__all__ = [
    "CODE_MODULUS",
    "DEFAULT_DIGITS",
    "DEFAULT_TIME_STEP",
    "DEFAULT_WINDOW",
    "InvalidArgumentError",
    "TotpEngine",
    "format_code",
    "generate_code",
    "hotp",
    "validate_code",
]
