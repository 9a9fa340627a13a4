#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Offset (wheel) pre-sieve for the odd-candidate walk.

A table of the first m odd primes is built once. For one candidate n we keep
an offset vector O with 2*O[i] == n (mod P[i]), 0 <= O[i] < P[i]. A +2 step of
the candidate is then O[i] = (O[i] + 1) mod P[i], so no big modulus is taken
after the initial one, and O[i] == 0 iff P[i] divides n.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import gmpy2

logger = logging.getLogger(__name__)


# ---------------------------- Table ------------------------------------ #

def build_offset_table(count: int) -> tuple[int, ...]:
    """First `count` odd primes (3, 5, 7, ...) by trial division against the table."""
    if count <= 0:
        raise ValueError("wheel size must be > 0")
    primes: list[int] = []
    n = 3
    while len(primes) < count:
        is_prime = True
        for p in primes:
            if p * p > n:
                break
            if n % p == 0:
                is_prime = False
                break
        if is_prime:
            primes.append(n)
        n += 2  # next odd integer
    logger.debug(f"offset table: {count} primes, largest {primes[-1]}")
    return tuple(primes)


# ---------------------------- Offsets ---------------------------------- #

def init_offsets(candidate, table: Sequence[int]) -> List[int]:
    """Offset vector for an odd candidate; P[i] divides it after (P[i] - O[i]) % P[i] steps of +2."""
    if not gmpy2.is_odd(candidate):
        raise ValueError("candidate must be odd")
    offsets = []
    for p in table:
        r = int(candidate % p)
        # halve r mod p; p is odd so r + p is even when r is odd
        if r & 1:
            r += p
        offsets.append(r // 2)
    return offsets


def update_offsets(offsets: List[int], table: Sequence[int]) -> None:
    """Advance every offset by one +2 step of the candidate, in place."""
    for i, p in enumerate(table):
        o = offsets[i] + 1
        offsets[i] = 0 if o == p else o


def any_offset_zero(offsets: Sequence[int]) -> bool:
    return 0 in offsets


def advance(candidate, offsets: List[int], table: Sequence[int]):
    """
    Step the candidate by 2 until no wheel prime divides it.

    Returns (candidate, skipped). `offsets` is updated in place and stays in
    lock-step with the returned candidate.
    """
    skipped = 0
    while any_offset_zero(offsets):
        candidate += 2
        update_offsets(offsets, table)
        skipped += 1
    return candidate, skipped
