"""
Tests for short code generation and the allocation protocol.

The registry used here enforces uniqueness the way the database's UNIQUE
constraints do, so concurrent allocations exercise the insert-time
collision path as well as the pre-insert check.
"""

import asyncio

import pytest

from shortener.core.exceptions import (
    AliasTakenError,
    ExhaustedRetriesError,
    InvalidAliasError,
)
from shortener.db.models import ShortURL
from shortener.services.code_generator import (
    ALPHABET,
    ShortCodeAllocator,
    generate_short_code,
)


def record_for(code: str) -> ShortURL:
    return ShortURL(original_url="https://example.com/", short_code=code)


def alias_record_for(code: str) -> ShortURL:
    return ShortURL(original_url="https://example.com/", short_code=code, custom_alias=code)


def scripted(codes):
    """Code factory returning ``codes`` in order."""
    iterator = iter(codes)
    return lambda: next(iterator)


class TestGenerateShortCode:

    def test_default_length_and_alphabet(self):
        for _ in range(200):
            code = generate_short_code()
            assert len(code) == 6
            assert all(c in ALPHABET for c in code)

    def test_custom_length(self):
        assert len(generate_short_code(10)) == 10

    def test_alphabet_is_base62(self):
        assert len(ALPHABET) == 62
        assert len(set(ALPHABET)) == 62


class TestRandomAllocation:

    async def test_allocates_fresh_code(self, registry):
        allocator = ShortCodeAllocator(registry, code_factory=scripted(["abc123"]))

        record = await allocator.allocate(record_for)

        assert record.short_code == "abc123"
        assert record.id is not None
        assert await registry.exists("abc123")

    async def test_retries_past_existing_codes(self, registry):
        await registry.insert(record_for("taken1"))
        await registry.insert(record_for("taken2"))
        allocator = ShortCodeAllocator(registry, code_factory=scripted(["taken1", "taken2", "free01"]))

        record = await allocator.allocate(record_for)

        assert record.short_code == "free01"

    async def test_exhausts_after_max_attempts(self, registry):
        await registry.insert(record_for("always"))
        calls = []

        def factory():
            calls.append(1)
            return "always"

        allocator = ShortCodeAllocator(registry, max_attempts=10, code_factory=factory)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            await allocator.allocate(record_for)

        assert exc_info.value.attempts == 10
        assert len(calls) == 10

    async def test_insert_collision_counts_as_attempt(self, registry):
        # the check never sees the collision; only the insert does
        await registry.insert(record_for("racey1"))

        async def blind_exists(code):
            return False

        registry.exists = blind_exists
        allocator = ShortCodeAllocator(registry, code_factory=scripted(["racey1", "fresh1"]))

        record = await allocator.allocate(record_for)

        assert record.short_code == "fresh1"
        assert registry.insert_calls == 3  # setup insert + collision + success

    async def test_random_code_never_equals_existing_alias(self, registry):
        await registry.insert(alias_record_for("myalias"))
        allocator = ShortCodeAllocator(registry, code_factory=scripted(["myalias", "other1"]))

        record = await allocator.allocate(record_for)

        assert record.short_code == "other1"


class TestAliasAllocation:

    async def test_alias_becomes_short_code(self, registry):
        allocator = ShortCodeAllocator(registry)

        record = await allocator.allocate(alias_record_for, custom_alias="my-link")

        assert record.short_code == "my-link"
        assert record.custom_alias == "my-link"

    async def test_alias_taken(self, registry):
        allocator = ShortCodeAllocator(registry)
        await allocator.allocate(alias_record_for, custom_alias="my-link")

        with pytest.raises(AliasTakenError):
            await allocator.allocate(alias_record_for, custom_alias="my-link")

    async def test_alias_colliding_with_random_code_is_taken(self, registry):
        await registry.insert(record_for("Ab3dE9"))
        allocator = ShortCodeAllocator(registry)

        with pytest.raises(AliasTakenError):
            await allocator.allocate(alias_record_for, custom_alias="Ab3dE9")

    @pytest.mark.parametrize("alias", ["ab", "api", "bad alias"])
    async def test_invalid_alias_never_touches_registry(self, registry, alias):
        allocator = ShortCodeAllocator(registry)

        with pytest.raises(InvalidAliasError):
            await allocator.allocate(alias_record_for, custom_alias=alias)

        assert registry.insert_calls == 0


class TestConcurrentAllocation:

    async def test_concurrent_random_allocations_are_unique(self, registry):
        # a tiny code pool forces collisions between concurrent allocations
        pool = ["c0", "c1", "c2", "c3", "c4", "c5", "c6", "c7"]
        counter = iter(range(10_000))

        def factory():
            return pool[next(counter) % len(pool)]

        allocator = ShortCodeAllocator(registry, max_attempts=len(pool) * 4, code_factory=factory)

        results = await asyncio.gather(
            *(allocator.allocate(record_for) for _ in range(len(pool))),
            return_exceptions=True,
        )

        codes = [r.short_code for r in results if isinstance(r, ShortURL)]
        assert len(codes) == len(set(codes))
        assert set(codes) <= set(pool)
        assert all(isinstance(r, (ShortURL, ExhaustedRetriesError)) for r in results)

    async def test_same_alias_has_exactly_one_winner(self, registry):
        allocator = ShortCodeAllocator(registry)

        results = await asyncio.gather(
            *(allocator.allocate(alias_record_for, custom_alias="contested") for _ in range(10)),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, ShortURL)]
        losers = [r for r in results if isinstance(r, AliasTakenError)]
        assert len(winners) == 1
        assert len(losers) == 9
        assert len(registry.records) == 1
