"""
Unit tests for the offset pre-sieve (offset_sieve.py)
"""

import gmpy2
import pytest

from offset_sieve import (
    advance,
    any_offset_zero,
    build_offset_table,
    init_offsets,
    update_offsets,
)


class TestBuildOffsetTable:
    """Test the small odd prime table"""

    def test_first_entries(self):
        assert build_offset_table(10) == (3, 5, 7, 11, 13, 17, 19, 23, 29, 31)

    def test_single_entry(self):
        assert build_offset_table(1) == (3,)

    def test_strictly_increasing_and_prime(self):
        table = build_offset_table(500)
        assert len(table) == 500
        assert all(a < b for a, b in zip(table, table[1:]))
        assert all(gmpy2.is_prime(p) for p in table)

    def test_consecutive_odd_primes(self):
        table = build_offset_table(200)
        expected = []
        p = gmpy2.mpz(2)
        while len(expected) < 200:
            p = gmpy2.next_prime(p)
            expected.append(int(p))
        assert list(table) == expected

    def test_default_size_largest_prime(self, default_table):
        # 10000 odd primes: 3 .. the 10001st prime
        assert len(default_table) == 10000
        assert default_table[-1] == 104743

    @pytest.mark.parametrize("count", [0, -3])
    def test_invalid_count(self, count):
        with pytest.raises(ValueError):
            build_offset_table(count)


class TestInitOffsets:
    """Test offset vector initialization"""

    @pytest.mark.parametrize("candidate", [3, 15, 101, 104729, 10 ** 40 + 1, 2 ** 127 - 1])
    def test_offsets_halve_residues(self, candidate):
        table = build_offset_table(50)
        offsets = init_offsets(gmpy2.mpz(candidate), table)
        assert len(offsets) == len(table)
        for o, p in zip(offsets, table):
            assert 0 <= o < p
            assert (2 * o - candidate) % p == 0

    def test_zero_iff_divisible(self):
        table = build_offset_table(25)
        for candidate in range(3, 2001, 2):
            offsets = init_offsets(candidate, table)
            for o, p in zip(offsets, table):
                assert (o == 0) == (candidate % p == 0)

    def test_even_candidate_rejected(self):
        with pytest.raises(ValueError):
            init_offsets(100, build_offset_table(5))


class TestUpdateOffsets:
    """Test incremental offset updates"""

    def test_tracks_recomputed_offsets(self):
        table = build_offset_table(30)
        n = gmpy2.mpz(10 ** 30 + 7)
        offsets = init_offsets(n, table)
        for _ in range(500):
            n += 2
            update_offsets(offsets, table)
            assert offsets == init_offsets(n, table)

    def test_wraps_to_zero(self):
        table = (3, 5)
        offsets = [2, 4]
        update_offsets(offsets, table)
        assert offsets == [0, 0]

    def test_any_offset_zero(self):
        assert any_offset_zero([1, 0, 3])
        assert not any_offset_zero([1, 2, 3])
        assert not any_offset_zero([])


class TestAdvance:
    """Test stepping to the next candidate free of wheel factors"""

    @pytest.mark.parametrize("start", [10 ** 9 + 1, 10 ** 20 + 1, 3 * 5 * 7 * 11 * 13 * 1000003])
    def test_result_not_divisible(self, start):
        table = build_offset_table(300)
        offsets = init_offsets(gmpy2.mpz(start), table)
        candidate, skipped = advance(gmpy2.mpz(start), offsets, table)
        assert candidate == start + 2 * skipped
        assert all(candidate % p != 0 for p in table)
        assert not any_offset_zero(offsets)
        assert offsets == init_offsets(candidate, table)

    def test_lands_on_smallest_survivor(self):
        table = build_offset_table(40)
        start = gmpy2.mpz(10 ** 12 + 1)
        offsets = init_offsets(start, table)
        candidate, _ = advance(start, offsets, table)
        n = start
        while any(n % p == 0 for p in table):
            n += 2
        assert candidate == n

    def test_clean_candidate_unchanged(self):
        table = build_offset_table(10)
        start = gmpy2.mpz(104729)
        offsets = init_offsets(start, table)
        candidate, skipped = advance(start, offsets, table)
        assert candidate == start
        assert skipped == 0
