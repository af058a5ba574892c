"""Tests for RedirectService: create, resolve, get_info and delete."""

from datetime import timedelta

import pytest

from app.core.exceptions import (
    AllocationExhaustedError,
    CodeConflictError,
    ForbiddenError,
    InvalidCodeError,
    InvalidExpiryError,
    InvalidURLError,
    ShortCodeNotFoundError,
)
from app.services.redirect_service import RedirectService


class TestCreate:

    @pytest.mark.asyncio
    async def test_generated_code(self, service, clock):
        link = await service.create("https://example.com")

        assert len(link.code) == 7
        assert link.code.isalnum()
        assert link.target_url == "https://example.com"
        assert link.click_count == 0
        assert link.owner_id is None
        assert link.expires_at is None
        assert link.created_at == clock()
        assert link.id

    @pytest.mark.asyncio
    async def test_codes_are_unique(self, service):
        codes = [(await service.create(f"https://example.com/{i}")).code for i in range(50)]
        assert len(set(codes)) == 50

    @pytest.mark.asyncio
    async def test_candidate_code_and_metadata(self, service, clock):
        link = await service.create(
            "https://example.com/launch",
            candidate_code="launch-2026",
            owner_id="user-1",
            title="  Launch   page ",
            ttl_hours=48,
        )

        assert link.code == "launch-2026"
        assert link.owner_id == "user-1"
        assert link.title == "Launch page"
        assert link.expires_at == clock() + timedelta(hours=48)
        assert link.expires_at > link.created_at

    @pytest.mark.asyncio
    async def test_taken_candidate_always_conflicts(self, service):
        await service.create("https://example.com/a", candidate_code="promo")
        for _ in range(3):
            with pytest.raises(CodeConflictError):
                await service.create("https://example.com/b", candidate_code="promo")

    @pytest.mark.asyncio
    async def test_expired_but_unpurged_code_still_conflicts(self, service, clock):
        await service.create("https://example.com/a", candidate_code="promo", ttl_hours=1)
        clock.advance(hours=2)
        with pytest.raises(CodeConflictError):
            await service.create("https://example.com/b", candidate_code="promo")

    @pytest.mark.asyncio
    async def test_invalid_url(self, service):
        for url in ["ftp://example.com/file", "not a url", "https://example.com/" + "a" * 2048]:
            with pytest.raises(InvalidURLError):
                await service.create(url)

    @pytest.mark.asyncio
    async def test_invalid_candidate(self, service):
        with pytest.raises(InvalidCodeError):
            await service.create("https://example.com", candidate_code="no spaces!")

    @pytest.mark.asyncio
    async def test_hosts_without_a_dot_are_accepted(self, service):
        for url in ["http://[::1]:8080/", "http://intranet/wiki", "https://my-host:8443/x"]:
            link = await service.create(url)
            assert link.target_url == url

    @pytest.mark.asyncio
    async def test_ttl_out_of_range(self, service):
        for hours in [0, -5, 87601, 4_294_967_295]:
            with pytest.raises(InvalidExpiryError):
                await service.create("https://example.com", ttl_hours=hours)
        assert (await service.get_stats()).total_urls == 0

    @pytest.mark.asyncio
    async def test_reserved_candidate(self, service):
        for code in ["health", "docs", "redoc", "api"]:
            with pytest.raises(InvalidCodeError):
                await service.create("https://example.com", candidate_code=code)

    @pytest.mark.asyncio
    async def test_allocation_exhausted(self, session, click_recorder, clock):
        await RedirectService(session, click_recorder, clock=clock).create(
            "https://example.com", candidate_code="SAME000"
        )
        service = RedirectService(session, click_recorder, clock=clock, generator=lambda length: "SAME000")

        with pytest.raises(AllocationExhaustedError):
            await service.create("https://example.com/other")

    @pytest.mark.asyncio
    async def test_insert_race_is_reported_as_conflict(self, session, click_recorder, clock, monkeypatch):
        await RedirectService(session, click_recorder, clock=clock).create(
            "https://example.com", candidate_code="raced"
        )
        service = RedirectService(session, click_recorder, clock=clock)

        # Simulate a concurrent writer that claimed the code after our existence check
        async def stale_exists(code):
            return False
        monkeypatch.setattr(service.allocator.repository, "exists", stale_exists)

        with pytest.raises(CodeConflictError):
            await service.create("https://example.com/other", candidate_code="raced")


class TestResolve:

    @pytest.mark.asyncio
    async def test_returns_target_and_counts_click(self, service, click_recorder):
        link = await service.create("https://example.com")

        assert await service.resolve(link.code) == "https://example.com"
        await click_recorder.drain()

        info = await service.get_info(link.code)
        assert info.click_count == 1

    @pytest.mark.asyncio
    async def test_click_count_after_many_resolves(self, service, click_recorder):
        link = await service.create("https://example.com")
        for _ in range(10):
            await service.resolve(link.code)
        await click_recorder.drain()

        assert (await service.get_info(link.code)).click_count == 10

    @pytest.mark.asyncio
    async def test_does_not_wait_for_click(self, service, click_recorder):
        link = await service.create("https://example.com")
        await service.resolve(link.code)
        assert click_recorder.pending == 1

    @pytest.mark.asyncio
    async def test_unknown_code(self, service):
        with pytest.raises(ShortCodeNotFoundError):
            await service.resolve("nonexistent")

    @pytest.mark.asyncio
    async def test_malformed_code_is_not_found(self, service):
        with pytest.raises(ShortCodeNotFoundError):
            await service.resolve("../admin")

    @pytest.mark.asyncio
    async def test_expired_looks_like_missing(self, service, clock, click_recorder):
        link = await service.create("https://example.com", ttl_hours=1)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(ShortCodeNotFoundError) as expired:
            await service.resolve(link.code)
        with pytest.raises(ShortCodeNotFoundError) as missing:
            await service.resolve("neverexisted")

        assert type(expired.value) is type(missing.value)
        assert expired.value.kind == missing.value.kind
        assert click_recorder.pending == 0

    @pytest.mark.asyncio
    async def test_not_expired_until_deadline(self, service, clock):
        link = await service.create("https://example.com", ttl_hours=1)
        clock.advance(minutes=59)
        assert await service.resolve(link.code) == "https://example.com"


class TestGetInfo:

    @pytest.mark.asyncio
    async def test_does_not_count_click(self, service, click_recorder):
        link = await service.create("https://example.com")
        await service.get_info(link.code)
        assert click_recorder.pending == 0
        assert (await service.get_info(link.code)).click_count == 0

    @pytest.mark.asyncio
    async def test_expired(self, service, clock):
        link = await service.create("https://example.com", ttl_hours=2)
        clock.advance(hours=3)
        with pytest.raises(ShortCodeNotFoundError):
            await service.get_info(link.code)


class TestDelete:

    @pytest.mark.asyncio
    async def test_owner_can_delete(self, service):
        link = await service.create("https://example.com", owner_id="U1")
        await service.delete(link.code, requester_id="U1")
        with pytest.raises(ShortCodeNotFoundError):
            await service.get_info(link.code)

    @pytest.mark.asyncio
    async def test_other_user_is_forbidden(self, service):
        link = await service.create("https://example.com", owner_id="U1")
        with pytest.raises(ForbiddenError):
            await service.delete(link.code, requester_id="U2")
        with pytest.raises(ForbiddenError):
            await service.delete(link.code, requester_id=None)
        assert (await service.get_info(link.code)).owner_id == "U1"

    @pytest.mark.asyncio
    async def test_anonymous_link_deletable_by_anyone(self, service):
        for requester in ["U2", None]:
            link = await service.create("https://example.com")
            await service.delete(link.code, requester_id=requester)
            with pytest.raises(ShortCodeNotFoundError):
                await service.resolve(link.code)

    @pytest.mark.asyncio
    async def test_missing_or_expired(self, service, clock):
        with pytest.raises(ShortCodeNotFoundError):
            await service.delete("nonexistent", requester_id="U1")

        link = await service.create("https://example.com", owner_id="U1", ttl_hours=1)
        clock.advance(hours=2)
        with pytest.raises(ShortCodeNotFoundError):
            await service.delete(link.code, requester_id="U1")


class TestListingAndStats:

    @pytest.mark.asyncio
    async def test_list_owner_links_newest_first(self, service, clock):
        first = await service.create("https://example.com/1", owner_id="U1")
        clock.advance(minutes=1)
        second = await service.create("https://example.com/2", owner_id="U1")
        await service.create("https://example.com/3", owner_id="U2")

        links = await service.list_owner_links("U1")
        assert [link.code for link in links] == [second.code, first.code]

    @pytest.mark.asyncio
    async def test_stats(self, service, click_recorder):
        a = await service.create("https://example.com/a")
        await service.create("https://example.com/b")
        for _ in range(3):
            await service.resolve(a.code)
        await click_recorder.drain()

        stats = await service.get_stats()
        assert stats.total_urls == 2
        assert stats.total_clicks == 3
        assert stats.avg_clicks == pytest.approx(1.5)


@pytest.mark.asyncio
async def test_end_to_end_scenario(service, click_recorder):
    link = await service.create("https://example.com", candidate_code=None, owner_id=None, ttl_hours=None)
    assert len(link.code) == 7

    assert await service.resolve(link.code) == "https://example.com"
    await click_recorder.drain()
    assert (await service.get_info(link.code)).click_count == 1

    with pytest.raises(ShortCodeNotFoundError):
        await service.resolve("nonexistent")
