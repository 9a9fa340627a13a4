#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
MRPrimes: generate large probable primes with the Miller–Rabin test (gmpy2 + threads).

Each requested prime gets its own thread: random odd d-digit start, offset
pre-sieve over the first O odd primes, then k Miller–Rabin rounds per surviving
candidate. Primes are appended to the output file as soon as they are found.

Usage examples:
  python mrprimes.py -n 10 -d 300
  python mrprimes.py -o big.txt -n 4 -d 1000 -p 20 -s 42 --append
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass

import gmpy2

from prime_search import ConfigError, SearchContext, SinkError, run_search

__version__ = "1.0.7"

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


# ---------------------------- Helpers ---------------------------------- #

def gmpy2_version_str():
    v = getattr(gmpy2, "__version__", None)
    if v:
        return v
    vfun = getattr(gmpy2, "version", None)
    try:
        return vfun() if callable(vfun) else "unknown"
    except Exception:
        return "unknown"


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


class Stopwatch:
    """Each lap() returns the seconds since the previous lap (or construction)."""

    def __init__(self):
        self._last = time.perf_counter()

    def lap(self) -> float:
        now = time.perf_counter()
        dt = now - self._last
        self._last = now
        return dt


# ---------------------------- Data ------------------------------------- #

@dataclass
class Config:
    output: str = "primes.txt"
    num_primes: int = 10
    num_digits: int = 300
    rounds: int = 8
    num_offsets: int = 10000
    seed: int | None = None
    append: bool = False
    quiet: bool = False


# ------------------------------- CLI / Main ------------------------------ #

def print_version():
    print(f"\tMRPrimes {__version__}")
    print("\tCopyright (C) 2012, 2013 Evan Brown")
    print("\tLicense GPLv3+: GNU GPL version 3 or later <http://gnu.org/licenses/gpl.html>")
    print("\tThis is free software: you are free to change and redistribute it.")
    print("\tThere is NO WARRANTY, to the extent permitted by law.")
    print(f"\tpython: {sys.version.split()[0]}  gmpy2: {gmpy2_version_str()}")


def build_parser() -> argparse.ArgumentParser:
    defaults = Config()
    parser = argparse.ArgumentParser(
        prog="mrprimes",
        description="Generate large probable primes (Miller-Rabin, offset pre-sieve, one thread per prime).",
    )
    parser.add_argument("-o", "--output", default=defaults.output,
                        help=f"output file, one prime per line (default: {defaults.output})")
    parser.add_argument("-n", "--numprimes", dest="num_primes", type=int, default=defaults.num_primes,
                        help=f"number of primes to generate (default: {defaults.num_primes})")
    parser.add_argument("-d", "--numdigits", dest="num_digits", type=int, default=defaults.num_digits,
                        help=f"number of decimal digits per prime, >= 2 (default: {defaults.num_digits})")
    parser.add_argument("-p", "--precision", dest="rounds", type=int, default=defaults.rounds,
                        help=f"Miller-Rabin rounds, 1..199 (default: {defaults.rounds})")
    parser.add_argument("-O", "--numoffsets", dest="num_offsets", type=int, default=defaults.num_offsets,
                        help=f"number of offset (pre-sieve) primes (default: {defaults.num_offsets})")
    parser.add_argument("-s", "--seed", type=int, default=None,
                        help="random seed >= 0 (default: current time)")
    parser.add_argument("-a", "--append", action="store_true",
                        help="append to the output file instead of truncating it")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="suppress progress and timing lines")
    parser.add_argument("-v", "--version", action="store_true",
                        help="print program version information and exit")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="diagnostic log level on stderr (default: WARNING)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print_version()
        return 0

    setup_logging(args.log_level)
    cfg = Config(
        output=args.output,
        num_primes=args.num_primes,
        num_digits=args.num_digits,
        rounds=args.rounds,
        num_offsets=args.num_offsets,
        seed=args.seed if args.seed is not None else int(time.time()),
        append=args.append,
        quiet=args.quiet,
    )

    watch = Stopwatch()
    try:
        ctx = SearchContext.create(
            cfg.output,
            num_digits=cfg.num_digits,
            rounds=cfg.rounds,
            num_offsets=cfg.num_offsets,
            seed=cfg.seed,
            append=cfg.append,
            quiet=cfg.quiet,
            num_primes=cfg.num_primes,
        )
    except ConfigError as e:
        raise SystemExit(f"Error: {e}.")
    except SinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not cfg.quiet:
        print(f"Initialization time: {watch.lap():.6f} seconds.", flush=True)

    try:
        run_search(ctx, cfg.num_primes)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr, flush=True)
        return 130
    except SinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not cfg.quiet:
        print(f"Execution time: {watch.lap():.6f} seconds.", flush=True)
    logger.info(f"{ctx.sink.count} primes written to {cfg.output} (seed {cfg.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
