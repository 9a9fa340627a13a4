#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Parallel probable-prime search.

- One thread per requested prime; each thread draws a random odd d-digit start,
  walks forward over odd integers with the offset pre-sieve, and stops at the
  first candidate that passes Miller–Rabin.
- Two independent gmpy2 random streams: one for start points, one for
  witnesses. Each draw holds that stream's lock and nothing else.
- Found primes are counted and appended to the output file inside one
  critical section; the file is reopened per prime so an aborted run keeps
  everything written so far.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional

import gmpy2

from miller_rabin import is_probable_prime
from offset_sieve import advance, build_offset_table, init_offsets, update_offsets

logger = logging.getLogger(__name__)

MAX_ROUNDS = 200  # exclusive


# ---------------------------- Errors ----------------------------------- #

class SearchError(Exception):
    """Base class for prime search failures."""


class ConfigError(SearchError, ValueError):
    """Invalid search parameters; raised before any worker starts."""


class SinkError(SearchError):
    """The output file could not be written. Always fatal."""


class SearchAborted(SearchError):
    """A worker stopped because another worker failed or the run was interrupted."""


# ---------------------------- Shared state ----------------------------- #

class LockedRandom:
    """gmpy2 random state whose only operation is a single locked draw."""

    def __init__(self, seed: int):
        self._state = gmpy2.random_state(seed)
        self._lock = threading.Lock()

    def draw(self, bound):
        """Uniform mpz in [0, bound)."""
        with self._lock:
            return gmpy2.mpz_random(self._state, bound)


class PrimeSink:
    """Found-counter plus append-only output file, guarded by one lock."""

    def __init__(self, path, append: bool = False, quiet: bool = False):
        self.path = os.fspath(path)
        self.quiet = quiet
        self._count = 0
        self._lock = threading.Lock()
        if not append:
            try:
                with open(self.path, "w", encoding="utf-8"):
                    pass
            except OSError as e:
                raise SinkError(f"failure to open output file {self.path!r}: {e}") from e

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def record(self, prime) -> int:
        """Count, announce and append one prime. Returns its 1-based completion index."""
        with self._lock:
            self._count += 1
            index = self._count
            if not self.quiet:
                print(f"Prime #{index} found", flush=True)
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(f"{prime}\n")
            except OSError as e:
                raise SinkError(f"failure to open output file {self.path!r}: {e}") from e
        logger.debug(f"prime #{index} appended to {self.path}")
        return index


# ---------------------------- Data ------------------------------------- #

@dataclass
class SearchResult:
    prime: int
    index: int            # completion order, 1-based
    start: int            # random start point of the walk
    sieved: int           # odd candidates skipped by the offset sieve
    tested: int           # Miller–Rabin invocations
    ms_elapsed: float


@dataclass
class SearchContext:
    table: tuple[int, ...]
    num_digits: int
    rounds: int
    start_random: LockedRandom
    witness_random: LockedRandom
    sink: PrimeSink
    abort: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def create(cls, output, *, num_digits: int, rounds: int, num_offsets: int,
               seed: int, append: bool = False, quiet: bool = False,
               num_primes: int = 1) -> "SearchContext":
        validate_params(num_primes=num_primes, num_digits=num_digits, rounds=rounds,
                        num_offsets=num_offsets, seed=seed)
        table = build_offset_table(num_offsets)
        if table[-1] >= 10 ** (num_digits - 1):
            raise ConfigError(
                f"largest offset prime {table[-1]} reaches the {num_digits}-digit range; "
                f"use fewer offset primes or more digits")
        sink = PrimeSink(output, append=append, quiet=quiet)
        logger.info(f"search context: digits={num_digits} rounds={rounds} "
                    f"offsets={num_offsets} seed={seed} output={sink.path}")
        # same seed for both streams; they are separate states and never share draws
        return cls(table=table, num_digits=num_digits, rounds=rounds,
                   start_random=LockedRandom(seed), witness_random=LockedRandom(seed),
                   sink=sink)


# ---------------------------- Helpers ---------------------------------- #

def validate_params(*, num_primes: int, num_digits: int, rounds: int,
                    num_offsets: int, seed: int) -> None:
    if num_primes <= 0:
        raise ConfigError("number of primes must be a valid integer greater than 0")
    if num_digits < 2:
        raise ConfigError("number of digits must be a valid integer greater than or equal to 2")
    if not 0 < rounds < MAX_ROUNDS:
        raise ConfigError(f"Miller-Rabin precision must be greater than 0 and less than {MAX_ROUNDS}")
    if num_offsets <= 0:
        raise ConfigError("number of offset primes must be a valid integer greater than 0")
    if seed < 0:
        raise ConfigError("seed value must be an integer greater than or equal to 0")


def generate_start(num_digits: int, random_source):
    """Uniform random odd integer with exactly `num_digits` decimal digits."""
    if num_digits < 2:
        raise ValueError("num_digits must be >= 2")
    low = gmpy2.mpz(10) ** (num_digits - 1)
    span = low * 9 // 2                    # 45 followed by (d - 2) zeros
    n = random_source.draw(span) * 2       # even, in [0, 9 * 10^(d-1) - 2]
    return n + low + 1


# -------------------------- Core Search -------------------------------- #

def find_prime(ctx: SearchContext) -> SearchResult:
    """One worker: seed, then sieve/test until a probable prime is found."""
    t0 = time.perf_counter()
    start = generate_start(ctx.num_digits, ctx.start_random)
    offsets = init_offsets(start, ctx.table)
    candidate, sieved = advance(start, offsets, ctx.table)
    tested = 1

    # test first, then loop: nothing runs after a positive result
    while not is_probable_prime(candidate, ctx.rounds, ctx.witness_random):
        if ctx.abort.is_set():
            raise SearchAborted(f"search from {ctx.num_digits}-digit start aborted")
        candidate += 2
        update_offsets(offsets, ctx.table)
        candidate, skipped = advance(candidate, offsets, ctx.table)
        sieved += skipped
        tested += 1

    index = ctx.sink.record(candidate)
    ms = (time.perf_counter() - t0) * 1000.0
    logger.debug(f"worker {threading.current_thread().name}: prime #{index} after "
                 f"{tested} tests, {sieved} sieved, {ms:.1f} ms")
    return SearchResult(int(candidate), index, int(start), sieved, tested, ms)


def run_search(ctx: SearchContext, num_primes: int) -> List[SearchResult]:
    """Spawn `num_primes` workers, join them all, and return results in completion order."""
    if num_primes <= 0:
        raise ConfigError("number of primes must be a valid integer greater than 0")

    results: List[SearchResult] = []
    first_error: Optional[BaseException] = None
    with ThreadPoolExecutor(max_workers=num_primes, thread_name_prefix="mrprimes") as ex:
        futs = [ex.submit(find_prime, ctx) for _ in range(num_primes)]
        try:
            for fut in as_completed(futs):
                try:
                    results.append(fut.result())
                except SearchAborted:
                    continue
                except Exception as e:
                    ctx.abort.set()
                    if first_error is None:
                        first_error = e
                        logger.error(f"worker failed, aborting search: {e}")
        except KeyboardInterrupt:
            ctx.abort.set()
            raise

    if first_error is not None:
        raise first_error
    results.sort(key=lambda r: r.index)
    return results


def search_primes(output, num_primes: int = 10, num_digits: int = 300, rounds: int = 8,
                  num_offsets: int = 10000, seed: Optional[int] = None,
                  append: bool = False, quiet: bool = False) -> List[SearchResult]:
    """Build a context from plain arguments and run the search."""
    if seed is None:
        seed = int(time.time())
    ctx = SearchContext.create(output, num_digits=num_digits, rounds=rounds,
                               num_offsets=num_offsets, seed=seed, append=append,
                               quiet=quiet, num_primes=num_primes)
    return run_search(ctx, num_primes)
