#!/usr/bin/env python3
"""
evolving_core.py — Core library for the evolving string generator.

A generator holds a seed, a shared secret, an interval (seconds) and an epoch.
Every `interval` seconds after the epoch it yields a new token:

    token = hex(SHA-256(seed || secret || uint64_be(interval_index)))

Two parties holding the same serialized state compute the same token for the
same moment without talking to each other.

Goals:
- Pure functions / a frozen value object, usable directly from the CLI or the
  Flask API.
- No argparse / CLI loop here — see evolving_cli.py.

Security notes:
- The serialized state contains the secret in clear (base64 is an encoding,
  not encryption). Store state files like any other secret (chmod 600).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
import base64
import binascii
import hashlib
import json
import logging
import os
import shutil
import struct

import pyotp

from .errors import (
    ClockSkew,
    DecodeError,
    FormatError,
    InvalidInterval,
    InvalidOffset,
    InvalidTimestamp,
    PastTimestamp,
)

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEMO_INTERVAL = 10          # the demo loop rotates every 10s
STATE_FILE = "evolving_state.txt"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
MAX_U64 = 2 ** 64 - 1
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_SECOND = timedelta(seconds=1)

# serialized field names, in wire order
FIELD_SEED = "initial_string"
FIELD_SECRET = "secret"
FIELD_INTERVAL = "interval_seconds"
FIELD_EPOCH = "start_time"
STATE_FIELDS = (FIELD_SEED, FIELD_SECRET, FIELD_INTERVAL, FIELD_EPOCH)


# --- Helpers ---------------------------------------------------------------
def utcnow() -> datetime:
    """Current wall-clock time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _is_u64(value) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_U64


def int_to_bytes(i: int) -> bytes:
    """
    Encode an interval index as 8 bytes, big-endian.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">Q", i)


def validate_interval(interval) -> int:
    """
    Check that `interval` is a usable interval length.

    Raises:
        InvalidInterval: not an int, zero, negative, or wider than 64 bits.
    """
    if not _is_u64(interval) or interval == 0:
        raise InvalidInterval(f"interval must be an integer in 1..{MAX_U64}, got {interval!r}")
    return interval


def parse_timestamp(text: str) -> datetime:
    """
    Parse a target time written as YYYY-MM-DDTHH:MM:SS±HHMM.

    Returns:
        datetime: aware, normalized to UTC

    Raises:
        InvalidTimestamp: if the text does not match the format
    """
    try:
        parsed = datetime.strptime(text, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as e:
        raise InvalidTimestamp(f"cannot parse {text!r}, expected YYYY-MM-DDTHH:MM:SS+HHMM") from e
    if parsed.tzinfo is None:
        raise InvalidTimestamp(f"{text!r} has no UTC offset")
    return parsed.astimezone(timezone.utc)


# --- Generator -------------------------------------------------------------
@dataclass(frozen=True)
class TokenGenerator:
    """
    Immutable evolving-string state.

    Fields:
        seed: initial material
        secret: shared secret (hidden from repr)
        interval: window length in seconds, > 0
        epoch: aware UTC instant the generator started at
    """

    seed: str
    secret: str = field(repr=False)
    interval: int
    epoch: datetime

    def __post_init__(self):
        validate_interval(self.interval)
        if not isinstance(self.seed, str) or not isinstance(self.secret, str):
            raise TypeError("seed and secret must be str")
        object.__setattr__(self, "epoch", as_utc(self.epoch))

    @classmethod
    def create(cls, seed: str, secret: str, interval: int,
               now: Optional[datetime] = None) -> "TokenGenerator":
        """
        Create a generator whose epoch is "now".

        Arguments:
            seed: initial string
            secret: shared secret
            interval: seconds per token, must be > 0
            now: override the wall clock (tests, replay)

        Raises:
            InvalidInterval: if interval == 0 (checked here, never at division time)
        """
        epoch = utcnow() if now is None else now
        generator = cls(seed=seed, secret=secret, interval=interval, epoch=epoch)
        logger.debug("Created generator seed=%r interval=%ds epoch=%s",
                     seed, interval, generator.epoch.isoformat())
        return generator

    # --- time -> interval index -----------------------------------------
    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """
        Whole seconds elapsed since the epoch.

        Raises:
            ClockSkew: if `now` is before the epoch (clock went backwards)
        """
        now = utcnow() if now is None else as_utc(now)
        elapsed = now - self.epoch
        if elapsed < timedelta(0):
            raise ClockSkew(
                f"clock is {-elapsed.total_seconds():.3f}s behind the generator epoch "
                f"{self.epoch.isoformat()}"
            )
        return elapsed // ONE_SECOND

    def interval_index(self, now: Optional[datetime] = None) -> int:
        return self.elapsed_seconds(now) // self.interval

    def seconds_remaining(self, now: Optional[datetime] = None) -> int:
        """Seconds until the current token is replaced (1..interval)."""
        return self.interval - (self.elapsed_seconds(now) % self.interval)

    # --- tokens ----------------------------------------------------------
    def current_token(self, now: Optional[datetime] = None) -> str:
        """
        Token for the interval containing `now` (default: the wall clock).

        index = floor((now - epoch) / interval)
        """
        return self._derive_token(self.interval_index(now))

    def predict_token(self, offset_seconds: int) -> str:
        """
        Token for the interval containing `offset_seconds` after the epoch.

        The offset counts from the epoch, not from "now": a caller wanting the
        token at time T passes (T - epoch). See token_at().

        Raises:
            InvalidOffset: if the offset is not an unsigned 64-bit integer
        """
        if not _is_u64(offset_seconds):
            raise InvalidOffset(f"offset must be an integer in 0..{MAX_U64}, got {offset_seconds!r}")
        return self._derive_token(offset_seconds // self.interval)

    def token_at(self, when: datetime) -> str:
        """
        Token valid at the absolute instant `when`.

        Raises:
            PastTimestamp: if `when` is before the epoch
        """
        offset = as_utc(when) - self.epoch
        if offset < timedelta(0):
            raise PastTimestamp(f"{when.isoformat()} is before the generator epoch {self.epoch.isoformat()}")
        return self.predict_token(offset // ONE_SECOND)

    def _derive_token(self, interval_index: int) -> str:
        """
        SHA-256(seed bytes, secret bytes, 8-byte big-endian index) as lowercase hex.

        Byte order and widths must not change: other implementations
        concatenate exactly the same way.
        """
        hasher = hashlib.sha256()
        hasher.update(self.seed.encode("utf-8"))
        hasher.update(self.secret.encode("utf-8"))
        hasher.update(int_to_bytes(interval_index))
        token = hasher.hexdigest()
        logger.debug("derive: interval_index=%d -> %s...", interval_index, token[:8])
        return token

    # --- transport -------------------------------------------------------
    def epoch_seconds(self) -> int:
        """Epoch as whole seconds since 1970-01-01 UTC (sub-second part dropped)."""
        return (self.epoch - UNIX_EPOCH) // ONE_SECOND

    def serialize(self) -> str:
        """
        Encode the full state as base64(JSON).

        JSON is compact with fields in wire order:
            {"initial_string": ..., "secret": ..., "interval_seconds": ..., "start_time": ...}

        Raises:
            FormatError: if the epoch precedes 1970 (start_time is unsigned)
        """
        start_time = self.epoch_seconds()
        if start_time < 0:
            raise FormatError(f"epoch {self.epoch.isoformat()} precedes the Unix epoch")
        payload = {
            FIELD_SEED: self.seed,
            FIELD_SECRET: self.secret,
            FIELD_INTERVAL: self.interval,
            FIELD_EPOCH: start_time,
        }
        raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    @classmethod
    def deserialize(cls, text: str) -> "TokenGenerator":
        """
        Inverse of serialize().

        Raises:
            DecodeError: text is not valid standard base64
            FormatError: payload is not UTF-8 JSON with exactly the four fields
            InvalidInterval: payload carries interval 0
        """
        try:
            raw = base64.b64decode(text.strip(), validate=True)
        except (binascii.Error, ValueError, AttributeError) as e:
            raise DecodeError("state is not valid base64") from e

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise FormatError(f"state payload is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise FormatError("state payload must be a JSON object")
        if set(payload) != set(STATE_FIELDS):
            raise FormatError(
                f"state payload must have fields {', '.join(STATE_FIELDS)}; got {', '.join(sorted(payload))}"
            )

        seed = payload[FIELD_SEED]
        secret = payload[FIELD_SECRET]
        interval = payload[FIELD_INTERVAL]
        start_time = payload[FIELD_EPOCH]
        if not isinstance(seed, str) or not isinstance(secret, str):
            raise FormatError(f"{FIELD_SEED} and {FIELD_SECRET} must be strings")
        if not _is_u64(interval):
            raise FormatError(f"{FIELD_INTERVAL} must be an unsigned integer, got {interval!r}")
        if not _is_u64(start_time):
            raise FormatError(f"{FIELD_EPOCH} must be an unsigned integer, got {start_time!r}")
        try:
            seed.encode("utf-8")
            secret.encode("utf-8")
        except UnicodeEncodeError as e:
            raise FormatError(f"{FIELD_SEED} and {FIELD_SECRET} must be valid UTF-8 text: {e}") from e

        try:
            epoch = UNIX_EPOCH + timedelta(seconds=start_time)
        except OverflowError as e:
            raise FormatError(f"{FIELD_EPOCH}={start_time} is out of range") from e

        generator = cls(seed=seed, secret=secret, interval=validate_interval(interval), epoch=epoch)
        logger.debug("Restored generator seed=%r interval=%ds epoch=%s",
                     seed, interval, generator.epoch.isoformat())
        return generator


# --- Functional surface ----------------------------------------------------
def create(seed: str, secret: str, interval: int, now: Optional[datetime] = None) -> TokenGenerator:
    return TokenGenerator.create(seed, secret, interval, now=now)


def current_token(generator: TokenGenerator, now: Optional[datetime] = None) -> str:
    return generator.current_token(now)


def predict_token(generator: TokenGenerator, offset_seconds: int) -> str:
    return generator.predict_token(offset_seconds)


def serialize(generator: TokenGenerator) -> str:
    return generator.serialize()


def deserialize(text: str) -> TokenGenerator:
    return TokenGenerator.deserialize(text)


# --- State file I/O --------------------------------------------------------
def save_state(state: str, path: str = STATE_FILE) -> None:
    """
    Write a serialized generator to `path` (one line).

    - An existing file is backed up to path + ".bak" first.
    - Permission is not changed here; chmod 600 is recommended.
    """
    if os.path.exists(path):
        shutil.copy2(path, path + ".bak")
    with open(path, "w", encoding="utf-8") as f:
        f.write(state + "\n")
    logger.debug("State saved to %s", path)


def load_state(path: str = STATE_FILE) -> str:
    """
    Read a serialized generator from `path`.

    Raises FileNotFoundError if the file does not exist.
    """
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()


# --- Demo helpers ----------------------------------------------------------
def generate_demo_seed() -> Tuple[str, str]:
    """
    Random (seed, secret) pair for ad-hoc demos.

    Only meant for demos; real deployments pick and share their own material.
    """
    return pyotp.random_base32(), pyotp.random_base32()


if __name__ == "__main__":
    print("evolving_core.py is a library module. Use evolving_cli.py or import it.")
