"""
evolvingstring package
======================

Deterministic, time-evolving strings derived from a seed and a shared secret.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- interval_index = floor((now - epoch) / interval)
- token = hex(SHA-256(seed || secret || uint64_be(interval_index)))
  → 64 lowercase hex characters, a new one every `interval` seconds.

- predict_token(offset) uses floor(offset / interval): the offset counts
  seconds from the epoch, not from "now".

- serialize() = base64(JSON{initial_string, secret, interval_seconds, start_time});
  start_time is whole seconds since 1970-01-01 UTC.

──────────────────────────────────────────────
Quick usage
──────────────────────────────────────────────
>>> from evolvingstring import create, deserialize
>>> g = create("test_string", "secret", 60)
>>> state = g.serialize()          # hand this to the other party
>>> deserialize(state).current_token() == g.current_token()
True
"""
from .errors import (
    ClockSkew,
    DecodeError,
    EvolvingStringError,
    FormatError,
    InvalidInterval,
    InvalidOffset,
    InvalidTimestamp,
    PastTimestamp,
)
from .evolving_core import (
    TokenGenerator,
    create,
    current_token,
    predict_token,
    serialize,
    deserialize,
    parse_timestamp,
    save_state,
    load_state,
)

__all__ = [
    "TokenGenerator",
    "create",
    "current_token",
    "predict_token",
    "serialize",
    "deserialize",
    "parse_timestamp",
    "save_state",
    "load_state",
    "EvolvingStringError",
    "InvalidInterval",
    "InvalidOffset",
    "ClockSkew",
    "DecodeError",
    "FormatError",
    "InvalidTimestamp",
    "PastTimestamp",
]
