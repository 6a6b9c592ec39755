"""Tests for the debounced mutation watch."""

import asyncio

import pytest

from sellerscope.scrapers.mutation_watch import DebouncedWatch


class _Page:
    """Minimal DOM stand-in: a list of rows and an observer slot."""

    def __init__(self, rows: list[str] | None = None):
        self.rows = rows or []
        self.callback = None
        self.disconnected = 0
        self.snapshots: list[list[str]] = []

    async def extract(self) -> list[str]:
        self.snapshots.append(list(self.rows))
        return list(self.rows)

    async def attach(self, callback):
        self.callback = callback

        async def disconnect() -> None:
            self.disconnected += 1

        return disconnect


async def _mutate(page: _Page, states: list[list[str]], interval: float) -> None:
    for state in states:
        await asyncio.sleep(interval)
        page.rows = state
        page.callback()


class TestDebouncedWatch:
    @pytest.mark.asyncio
    async def test_burst_of_mutations_triggers_one_extraction(self) -> None:
        page = _Page()
        watch = DebouncedWatch(page.extract, debounce_delay=0.05, hard_timeout=1.0)
        states = [["a"], ["a", "b"], ["a", "b", "c"], ["x", "y", "z", "w"]]

        async def attach(callback):
            disconnect = await page.attach(callback)
            asyncio.get_running_loop().create_task(_mutate(page, states, 0.005))
            return disconnect

        result = await watch.run(attach)

        assert watch.extraction_count == 1
        assert watch.mutation_count == 4
        assert page.snapshots == [["x", "y", "z", "w"]]
        assert result.rows == ["x", "y", "z", "w"]
        assert result.timed_out is False
        assert page.disconnected == 1

    @pytest.mark.asyncio
    async def test_settled_content_is_extracted_without_mutations(self) -> None:
        page = _Page(["only"])
        watch = DebouncedWatch(page.extract, debounce_delay=0.02, hard_timeout=1.0)

        result = await watch.run(page.attach)

        assert result.rows == ["only"]
        assert watch.extraction_count == 1

    @pytest.mark.asyncio
    async def test_empty_extraction_keeps_watching(self) -> None:
        page = _Page()
        watch = DebouncedWatch(page.extract, debounce_delay=0.02, hard_timeout=1.0)

        async def attach(callback):
            disconnect = await page.attach(callback)
            asyncio.get_running_loop().create_task(_mutate(page, [["late"]], 0.1))
            return disconnect

        result = await watch.run(attach)

        assert result.rows == ["late"]
        assert result.timed_out is False
        assert page.snapshots == [[], ["late"]]

    @pytest.mark.asyncio
    async def test_hard_timeout_forces_extraction_and_closes(self) -> None:
        page = _Page()
        closed = []

        async def on_timeout() -> None:
            closed.append(True)

        watch = DebouncedWatch(
            page.extract, debounce_delay=0.02, hard_timeout=0.1, on_timeout=on_timeout
        )

        result = await watch.run(page.attach)

        assert result.rows == []
        assert result.timed_out is True
        assert closed == [True]
        assert page.disconnected == 1

    @pytest.mark.asyncio
    async def test_hard_timeout_cancels_pending_debounce(self) -> None:
        page = _Page()
        watch = DebouncedWatch(page.extract, debounce_delay=0.5, hard_timeout=0.1)

        async def attach(callback):
            disconnect = await page.attach(callback)

            async def never_settle() -> None:
                while True:
                    await asyncio.sleep(0.01)
                    page.rows = page.rows + ["row"]
                    page.callback()

            page.mutator = asyncio.get_running_loop().create_task(never_settle())
            return disconnect

        result = await watch.run(attach)
        page.mutator.cancel()

        assert result.timed_out is True
        assert watch.extraction_count == 1
        assert len(result.rows) > 0

    @pytest.mark.asyncio
    async def test_mutations_after_resolution_are_ignored(self) -> None:
        page = _Page(["done"])
        watch = DebouncedWatch(page.extract, debounce_delay=0.01, hard_timeout=1.0)

        await watch.run(page.attach)
        page.callback()
        await asyncio.sleep(0.03)

        assert watch.extraction_count == 1
        assert watch.mutation_count == 0
