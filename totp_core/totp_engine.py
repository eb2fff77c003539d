"""
totp_engine.py — TOTP engine (RFC 6238) built on HOTP (RFC 4226).

A shared secret plus the current UTC time becomes a 6-digit code; a
submitted code is accepted when it matches any time step within a small
window around the current one.

Parameters of the reference behavior:
- HMAC-SHA1, 6 digits (code % 1,000,000)
- time step of 3 minutes counted from the Unix epoch
- validation window of 2 steps on either side (5 steps in total)

Secrets are never stored; every call is a pure function of its arguments
and the clock, so one engine may be shared between threads freely.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union
import hashlib
import hmac
import logging
import operator
import struct

from totp_core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6
CODE_MODULUS = 10 ** DEFAULT_DIGITS
DEFAULT_TIME_STEP = timedelta(minutes=3)
DEFAULT_WINDOW = 2
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
SECRET_TEXT_ENCODING = "utf-16-le"   # text secrets, no BOM
MODIFIER_ENCODING = "utf-8"          # strict, rejects lone surrogates

_UINT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63
_MICROSECOND = timedelta(microseconds=1)

Secret = Union[bytes, bytearray, memoryview, str]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- RFC helpers -----------------------------------------------------------
def to_signed64(value: int) -> int:
    """Reinterpret the low 64 bits of ``value`` as a two's-complement int64."""
    value &= _UINT64_MASK
    return value - (1 << 64) if value & _INT64_SIGN else value


def to_unsigned64(value: int) -> int:
    """Reinterpret the low 64 bits of ``value`` as a uint64."""
    return value & _UINT64_MASK


def int_to_bytes(counter: int) -> bytes:
    """
    Encode a time step / counter as 8 bytes in network byte order.

    The unsigned counter is first viewed as a signed 64-bit value and then
    packed big-endian, so the bytes are identical to any other RFC 6238
    implementation for every counter in the uint64 range.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">q", to_signed64(counter))


def apply_modifier(message: bytes, modifier: Optional[str]) -> bytes:
    """Append the UTF-8 modifier to ``message``; None or "" leaves it as is."""
    if not modifier:
        return message
    return message + modifier.encode(MODIFIER_ENCODING, "strict")


def dynamic_truncate(digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    - offset = low nibble of the last digest byte
    - 4 bytes from offset, MSB of the first one cleared (0x7F)
    - returned as a non-negative 31-bit integer
    """
    offset = digest[-1] & 0x0F
    assert offset + 4 < len(digest), "truncation offset past end of digest"
    return (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )


def compute_code(secret: bytes, time_step: int, modifier: Optional[str] = None) -> int:
    """
    HOTP value for one counter: Truncate(HMAC-SHA1(secret, counter [+ modifier])) % 10^6.

    ``secret`` must already be bytes; callers go through ``secret_to_bytes``.
    """
    message = apply_modifier(int_to_bytes(time_step), modifier)
    digest = hmac.new(secret, message, hashlib.sha1).digest()
    return dynamic_truncate(digest) % CODE_MODULUS


def secret_to_bytes(secret: Optional[Secret]) -> bytes:
    """
    Normalise a secret to bytes.

    Text secrets are encoded as UTF-16LE without a byte-order mark, so
    ``"abc"`` and ``b"abc"`` are different secrets.

    Raises:
        InvalidArgumentError: secret is None
        TypeError: secret is neither bytes-like nor str
        UnicodeEncodeError: text secret holds unencodable characters
    """
    if secret is None:
        raise InvalidArgumentError("secret")
    if isinstance(secret, str):
        return secret.encode(SECRET_TEXT_ENCODING, "strict")
    if isinstance(secret, (bytes, bytearray, memoryview)):
        return bytes(secret)
    raise TypeError(f"secret must be bytes or str, not {type(secret).__name__}")


def format_code(code: int) -> str:
    """Render a code with its leading zeros, e.g. 4821 -> '004821'."""
    return f"{operator.index(code):0{DEFAULT_DIGITS}d}"


def hotp(secret: Secret, counter: int, modifier: Optional[str] = None) -> int:
    """
    Counter-based code (RFC 4226) for an explicit ``counter``.

    Same primitive the TOTP engine uses for each time step; useful to check
    output against the RFC 4226 Appendix D vectors or another implementation.
    """
    key = secret_to_bytes(secret)
    counter = operator.index(counter)
    if not 0 <= counter <= _UINT64_MASK:
        raise InvalidArgumentError("counter", f"counter out of uint64 range: {counter}")
    return compute_code(key, counter, modifier)


# --- Engine ----------------------------------------------------------------
class TotpEngine:
    """
    Time-based code generator/validator.

    Arguments:
        time_step: step duration, a timedelta or a number of seconds
            (default 3 minutes)
        window: steps accepted on either side of the current one (default 2)
        clock: zero-argument callable returning the current datetime; naive
            values are taken as UTC. Defaults to ``utc_now``.

    Note: with the defaults the accepted skew is ±6 minutes (2 × 3 min).
    """

    def __init__(
        self,
        time_step: Union[timedelta, int, float] = DEFAULT_TIME_STEP,
        window: int = DEFAULT_WINDOW,
        clock: Optional[Clock] = None,
    ):
        if not isinstance(time_step, timedelta):
            try:
                time_step = timedelta(seconds=time_step)
            except (OverflowError, ValueError) as e:
                raise InvalidArgumentError("time_step", f"time_step out of range: {time_step}") from e
        if time_step < _MICROSECOND:
            raise InvalidArgumentError("time_step", f"time_step must be positive, got {time_step}")
        window = operator.index(window)
        if window < 0:
            raise InvalidArgumentError("window", f"window must not be negative, got {window}")
        self._time_step = time_step
        self._window = window
        self._clock = clock

    def __repr__(self):
        return f"TotpEngine(time_step={self._time_step!r}, window={self._window})"

    @property
    def time_step(self) -> timedelta:
        return self._time_step

    @property
    def window(self) -> int:
        return self._window

    def _elapsed_microseconds(self) -> int:
        now = (self._clock or utc_now)()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (now - UNIX_EPOCH) // _MICROSECOND

    def current_time_step(self) -> int:
        """
        Number of whole steps elapsed since the Unix epoch, as a uint64.

        Division truncates toward zero; instants before the epoch wrap
        around to the top of the uint64 range.
        """
        elapsed = self._elapsed_microseconds()
        step = self._time_step // _MICROSECOND
        steps = abs(elapsed) // step
        if elapsed < 0:
            steps = -steps
        return to_unsigned64(steps)

    def seconds_remaining(self) -> int:
        """Whole seconds (rounded up) until the current step rolls over."""
        step = self._time_step // _MICROSECOND
        remaining = step - (self._elapsed_microseconds() % step)
        return -(-remaining // 1_000_000)

    def generate_code(self, secret: Secret, modifier: Optional[str] = None) -> int:
        """
        Code for the current time step.

        Raises:
            InvalidArgumentError: secret is None
            UnicodeEncodeError: secret or modifier cannot be encoded strictly
        """
        key = secret_to_bytes(secret)
        time_step = self.current_time_step()
        logger.debug("Generating code for time step %d", time_step)
        return compute_code(key, time_step, modifier)

    def validate_code(self, secret: Secret, code: int, modifier: Optional[str] = None) -> bool:
        """
        True if ``code`` matches any step in [T - window, T + window].

        Steps are scanned from the oldest to the newest; the first match wins.
        """
        key = secret_to_bytes(secret)
        submitted = format_code(code)
        current = self.current_time_step()
        signed_current = to_signed64(current)

        for offset in range(-self._window, self._window + 1):
            time_step = to_unsigned64(signed_current + offset)
            expected = format_code(compute_code(key, time_step, modifier))
            if hmac.compare_digest(expected, submitted):
                logger.debug("Code matched at offset %+d from time step %d", offset, current)
                return True

        logger.debug("No match within %d steps of time step %d", self._window, current)
        return False


# --- Module-level shortcuts ------------------------------------------------
_default_engine = TotpEngine()


def generate_code(secret: Secret, modifier: Optional[str] = None) -> int:
    """``TotpEngine().generate_code`` with the default configuration."""
    return _default_engine.generate_code(secret, modifier)


def validate_code(secret: Secret, code: int, modifier: Optional[str] = None) -> bool:
    """``TotpEngine().validate_code`` with the default configuration."""
    return _default_engine.validate_code(secret, code, modifier)
