"""
RNG Tests

Mulberry32 determinism, seed hashing, range helpers and stream position
tracking.
"""

import pytest

from packages.delve.state.rng import (
    RANDOM_STRING_CHARS,
    Random,
    generate_random_string,
    resolve_rng,
    seed_to_int,
)


class TestSeedConversion:
    """Seed strings hash with the h * 31 + c recurrence."""

    def test_known_string_seed(self):
        assert seed_to_int("abc") == 96354

    def test_single_character(self):
        assert seed_to_int("a") == 97

    def test_empty_string(self):
        assert seed_to_int("") == 0

    def test_integer_seed_masked_to_32_bits(self):
        assert seed_to_int(42) == 42
        assert seed_to_int(2**32 + 5) == 5

    def test_long_string_is_non_negative(self):
        value = seed_to_int("a-very-long-seed-string-that-overflows")
        assert 0 <= value <= 0x80000000

    def test_case_sensitive(self):
        assert seed_to_int("abc") != seed_to_int("ABC")


class TestDeterminism:
    """Same seed, same sequence."""

    def test_same_seed_same_sequence(self):
        a = Random("dungeon")
        b = Random("dungeon")
        assert [a.next() for _ in range(100)] == [b.next() for _ in range(100)]

    def test_different_seeds_differ(self):
        a = Random("dungeon")
        b = Random("dungeon2")
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_string_and_hashed_int_match(self):
        a = Random("abc")
        b = Random(96354)
        assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]

    def test_outputs_are_unsigned_32_bit(self, rng):
        for _ in range(500):
            assert 0 <= rng.next() <= 0xFFFFFFFF


class TestCounter:
    """The draw counter restores a stream position."""

    def test_counter_counts_raw_draws(self, rng):
        rng.next()
        rng.next_float()
        rng.next_int(1, 6)
        assert rng.counter == 3

    def test_restore_from_counter(self):
        original = Random("save-me")
        for _ in range(37):
            original.next()
        restored = Random("save-me", original.counter)
        assert restored.counter == 37
        assert [restored.next() for _ in range(10)] == [original.next() for _ in range(10)]

    def test_copy_is_independent(self, rng):
        rng.next()
        clone = rng.copy()
        assert clone.counter == rng.counter
        assert clone.next() == rng.next()
        clone.next()
        assert clone.counter == rng.counter + 1


class TestRangeHelpers:
    """next_float, next_int, choice, shuffle and chances."""

    def test_next_float_in_unit_interval(self, rng):
        for _ in range(1000):
            value = rng.next_float()
            assert 0.0 <= value < 1.0

    def test_next_float_is_next_over_2_32(self):
        a = Random("float")
        b = Random("float")
        assert a.next_float() == b.next() / 4294967296

    def test_next_int_inclusive_bounds(self, rng):
        seen = {rng.next_int(1, 6) for _ in range(2000)}
        assert seen == {1, 2, 3, 4, 5, 6}

    def test_next_int_single_value(self, rng):
        assert rng.next_int(7, 7) == 7

    def test_next_int_negative_range(self, rng):
        for _ in range(200):
            assert -1 <= rng.next_int(-1, 1) <= 1

    def test_choice_returns_member(self, rng):
        options = ["sword", "shield", "potion"]
        for _ in range(50):
            assert rng.choice(options) in options

    def test_choice_empty_raises(self, rng):
        with pytest.raises(ValueError):
            rng.choice([])

    def test_shuffle_in_place_permutation(self, rng):
        items = list(range(20))
        result = rng.shuffle(items)
        assert result is items
        assert sorted(items) == list(range(20))

    def test_shuffle_deterministic(self):
        a = Random("shuffle").shuffle(list(range(10)))
        b = Random("shuffle").shuffle(list(range(10)))
        assert a == b

    def test_chance_extremes(self, rng):
        assert not any(rng.chance(0.0) for _ in range(100))
        assert all(rng.chance(1.0) for _ in range(100))

    def test_percent_chance_extremes(self, rng):
        assert not any(rng.percent_chance(0) for _ in range(100))
        assert all(rng.percent_chance(100) for _ in range(100))


class TestHelpers:
    """resolve_rng and generate_random_string."""

    def test_resolve_rng_passes_through(self, rng):
        assert resolve_rng(rng) is rng

    def test_resolve_rng_creates_instance(self):
        created = resolve_rng(None)
        assert isinstance(created, Random)
        assert created.counter == 0

    def test_random_string_alphabet(self, rng):
        value = generate_random_string(64, rng)
        assert len(value) == 64
        assert set(value) <= set(RANDOM_STRING_CHARS)

    def test_random_string_deterministic(self):
        assert generate_random_string(8, Random("x")) == generate_random_string(8, Random("x"))

    def test_random_string_advances_counter(self, rng):
        generate_random_string(8, rng)
        assert rng.counter == 8
