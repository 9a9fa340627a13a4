#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Randomized strong Miller–Rabin test on gmpy2 integers.

Witnesses come from a shared random source (anything with a thread-safe
``draw(bound)`` returning a uniform integer in [0, bound)). Only the draw is
serialized; the modular exponentiation runs outside any lock.
"""

from __future__ import annotations

import gmpy2


def split_power_of_two(m) -> tuple[gmpy2.mpz, int]:
    """Write m = 2^s * d with d odd; returns (d, s)."""
    d = gmpy2.mpz(m)
    if d <= 0:
        raise ValueError("m must be positive")
    s = 0
    while gmpy2.is_even(d):
        d >>= 1
        s += 1
    return d, s


def is_probable_prime(n, rounds: int, random_source) -> bool:
    """
    `rounds` independent strong-probable-prime rounds on odd n > 4.

    False means n is certainly composite. True means every witness agreed;
    a composite survives with probability at most 4**-rounds.
    """
    n = gmpy2.mpz(n)
    if n <= 4 or gmpy2.is_even(n):
        raise ValueError(f"Miller-Rabin needs an odd n > 4 (got {n})")
    if rounds <= 0:
        raise ValueError("rounds must be > 0")

    n_minus_1 = n - 1
    d, s = split_power_of_two(n_minus_1)

    for _ in range(rounds):
        a = random_source.draw(n - 3) + 2  # a in [2, n - 2]
        x = gmpy2.powmod(a, d, n)
        if x == 1 or x == n_minus_1:
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == n_minus_1:
                break
            if x == 1:
                # nontrivial square root of 1
                return False
        else:
            return False
    return True
