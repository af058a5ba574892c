"""Tests for short code generation and collision-free allocation."""

import itertools

import pytest

from app.core.exceptions import AllocationExhaustedError, CodeConflictError, InvalidCodeError
from app.db.models import ShortLink
from app.services.code_allocator import CodeAllocator
from app.services.code_generator import CODE_ALPHABET, generate_code


def sequence_generator(*codes):
    """Generator stub that hands out `codes` in order, then repeats the last one."""
    source = itertools.chain(codes, itertools.repeat(codes[-1]))
    calls = []

    def generate(length):
        calls.append(length)
        return next(source)

    generate.calls = calls
    return generate


async def store_link(session, code):
    session.add(ShortLink(code=code, target_url="https://example.com"))
    await session.commit()


class TestGenerateCode:

    def test_default_length_is_seven(self):
        assert len(generate_code()) == 7

    def test_requested_length(self):
        for length in [1, 5, 10, 15]:
            assert len(generate_code(length)) == length

    def test_alphabet(self):
        assert len(CODE_ALPHABET) == 62
        code = generate_code(500)
        assert set(code) <= set(CODE_ALPHABET)

    def test_codes_differ(self):
        codes = {generate_code() for _ in range(100)}
        assert len(codes) == 100

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            generate_code(0)
        with pytest.raises(ValueError):
            generate_code(-3)


class TestCodeAllocator:

    @pytest.mark.asyncio
    async def test_generated_code_when_no_candidate(self, session):
        allocator = CodeAllocator(session, generator=sequence_generator("Abc1234"))
        assert await allocator.allocate_unique_code() == "Abc1234"

    @pytest.mark.asyncio
    async def test_retries_on_collision(self, session):
        await store_link(session, "Taken00")
        generator = sequence_generator("Taken00", "Taken00", "Free000")
        allocator = CodeAllocator(session, generator=generator)

        assert await allocator.allocate_unique_code() == "Free000"
        assert len(generator.calls) == 3

    @pytest.mark.asyncio
    async def test_exhaustion_after_budget(self, session):
        await store_link(session, "Taken00")
        generator = sequence_generator("Taken00")
        allocator = CodeAllocator(session, generator=generator, max_attempts=10)

        with pytest.raises(AllocationExhaustedError) as exc_info:
            await allocator.allocate_unique_code()
        assert exc_info.value.attempts == 10
        assert len(generator.calls) == 10

    @pytest.mark.asyncio
    async def test_passes_configured_length_to_generator(self, session):
        generator = sequence_generator("abcdefghij")
        allocator = CodeAllocator(session, generator=generator, code_length=10)
        await allocator.allocate_unique_code()
        assert generator.calls == [10]

    @pytest.mark.asyncio
    async def test_free_candidate_is_returned_unchanged(self, session):
        allocator = CodeAllocator(session)
        assert await allocator.allocate_unique_code("my-launch") == "my-launch"

    @pytest.mark.asyncio
    async def test_taken_candidate_conflicts(self, session):
        await store_link(session, "promo")
        generator = sequence_generator("unused1")
        allocator = CodeAllocator(session, generator=generator)

        with pytest.raises(CodeConflictError):
            await allocator.allocate_unique_code("promo")
        # Never silently substituted with a generated code
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_invalid_candidate(self, session):
        allocator = CodeAllocator(session)
        for candidate in ["ab", "has space", "bad@char", "x" * 21]:
            with pytest.raises(InvalidCodeError):
                await allocator.allocate_unique_code(candidate)
