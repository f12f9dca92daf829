#!/usr/bin/env python3
"""
evolving_cli.py — CLI wrapper for evolving_core.py

Subcommands:
- init    : create a generator, print its serialized state
- current : print the current token
- predict : print the token at a future date/time
- restore : current/predicted token of a previously serialized state
- demo    : random seed/secret, print each new token as it rotates

Examples:
    evolvingstring init test_string secret 60
    evolvingstring current test_string secret 60
    evolvingstring predict test_string secret 60 2030-01-01T00:00:00+0000
    evolvingstring restore --state-file evolving_state.txt --at 2030-01-01T00:00:00+0000
"""

import argparse
import logging
import sys
import time

import qrcode

from . import evolving_core
from .errors import EvolvingStringError, PastTimestamp

logger = logging.getLogger(__name__)


# --- argument types ---
def interval_arg(text: str) -> int:
    """argparse type: unsigned integer seconds (zero is rejected later by the core)."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid interval {text!r}: expected whole seconds")
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid interval {text!r}: must not be negative")
    return value


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[+] %(message)s", stream=sys.stderr)


def print_qr(data: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)
    qr.print_ascii(out=sys.stdout, invert=True)


# --- CLI command handlers ---
def cmd_init(args):
    generator = evolving_core.create(args.seed, args.secret, args.interval)
    state = generator.serialize()
    if args.save:
        evolving_core.save_state(state, args.save)
        logger.info("State saved to %s", args.save)
    print(state)
    if args.qr:
        print_qr(state)


def cmd_current(args):
    generator = evolving_core.create(args.seed, args.secret, args.interval)
    print(f"Current string: {generator.current_token()}")


def cmd_predict(args):
    target = evolving_core.parse_timestamp(args.datetime)
    now = evolving_core.utcnow()
    if target < now:
        raise PastTimestamp("Predicted datetime must be in the future")

    generator = evolving_core.create(args.seed, args.secret, args.interval, now=now)
    # offset counts from the epoch; for a fresh generator epoch == now
    offset = (target - generator.epoch) // evolving_core.ONE_SECOND
    logger.debug("predict: target=%s offset=%ds", target.isoformat(), offset)
    print(f"Predicted string at {args.datetime}: {generator.predict_token(offset)}")


def cmd_restore(args):
    state = args.state if args.state is not None else evolving_core.load_state(args.state_file)
    generator = evolving_core.deserialize(state)
    if args.at:
        target = evolving_core.parse_timestamp(args.at)
        print(f"Predicted string at {args.at}: {generator.token_at(target)}")
    else:
        remaining = generator.seconds_remaining()
        print(f"Current string: {generator.current_token()}  (valid ~{remaining}s)")


def cmd_demo(args):
    seed, secret = evolving_core.generate_demo_seed()
    generator = evolving_core.create(seed, secret, args.interval)
    print(f"[demo] seed={seed} interval={args.interval}s. Press Ctrl+C to quit.\n")
    last_token = None
    shown = 0
    try:
        while args.count is None or shown < args.count:
            token = generator.current_token()
            if token != last_token:
                print(f"Current string: {token}")
                last_token = token
                shown += 1
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")


# --- Argparse builder ---
def _add_generator_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("seed", help="Initial string")
    p.add_argument("secret", help="Shared secret")
    p.add_argument("interval", type=interval_arg, help="Interval length (seconds)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="evolvingstring",
                                description="Time-evolving string generator (SHA-256)")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose output on stderr")
    sub = p.add_subparsers(dest="cmd")

    # init
    pi = sub.add_parser("init", help="Create a generator and print its serialized state")
    _add_generator_args(pi)
    pi.add_argument("--save", metavar="FILE", help="Also write the state to FILE")
    pi.add_argument("--qr", action="store_true", help="Print the state as a terminal QR code")
    pi.set_defaults(func=cmd_init)

    # current
    pc = sub.add_parser("current", help="Print the current string")
    _add_generator_args(pc)
    pc.set_defaults(func=cmd_current)

    # predict
    pp = sub.add_parser("predict", help="Print the string at a future date/time")
    _add_generator_args(pp)
    pp.add_argument("datetime", help="Target time, YYYY-MM-DDTHH:MM:SS+HHMM")
    pp.set_defaults(func=cmd_predict)

    # restore
    pr = sub.add_parser("restore", help="Use a serialized state from init")
    src = pr.add_mutually_exclusive_group(required=True)
    src.add_argument("state", nargs="?", help="Serialized state string")
    src.add_argument("--state-file", metavar="FILE", help="Read the state from FILE")
    pr.add_argument("--at", metavar="DATETIME", help="Target time, YYYY-MM-DDTHH:MM:SS+HHMM")
    pr.set_defaults(func=cmd_restore)

    # demo
    pd = sub.add_parser("demo", help="Random seed/secret, print each new string")
    pd.add_argument("--interval", type=interval_arg, default=evolving_core.DEMO_INTERVAL)
    pd.add_argument("--count", type=int, help="Stop after COUNT strings")
    pd.set_defaults(func=cmd_demo)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return 1
    try:
        args.func(args)
    except (EvolvingStringError, OSError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
