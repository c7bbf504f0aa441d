"""Tests del controlador de paginación."""

import asyncio

import pytest

from core.domain.states import Failed, Idle, Loading
from core.errors import ConnectivityError, RequestTimeoutError, UnexpectedTransportError
from core.services.pagination import PaginationController
from core.services.store import EntityStore


def _controller(transport, dispatcher, **kwargs):
    store = EntityStore()
    return PaginationController(transport, store, dispatcher, page_size=2, **kwargs), store


class TestSequentialLoading:
    @pytest.mark.asyncio
    async def test_pages_append_in_order_and_cursor_tracks_successes(
        self, transport, dispatcher, make_entity, page_factory
    ):
        for index in range(3):
            items = [make_entity(index * 2 + 1, f"E{index * 2 + 1}"), make_entity(index * 2 + 2, f"E{index * 2 + 2}")]
            transport.pages[index] = page_factory(items, page_index=index, total_pages=3)
        controller, store = _controller(transport, dispatcher)

        for _ in range(3):
            await controller.load_next_page()

        ids = [item.id for item in store]
        assert ids == [1, 2, 3, 4, 5, 6]
        assert len(set(ids)) == len(ids)
        assert controller.page == 3
        assert transport.list_calls == [(0, 2), (1, 2), (2, 2)]

    @pytest.mark.asyncio
    async def test_overlapping_pages_are_deduplicated(self, transport, dispatcher, make_entity, page_factory):
        transport.pages[0] = page_factory([make_entity(1, "Agumon"), make_entity(2, "Gabumon")], 0, 3)
        transport.pages[1] = page_factory([make_entity(2, "Gabumon"), make_entity(3, "Patamon")], 1, 3)
        controller, store = _controller(transport, dispatcher)

        await controller.load_next_page()
        await controller.load_next_page()

        assert [item.id for item in store] == [1, 2, 3]
        assert controller.state == Idle(2, False)


class TestAtMostOneInFlight:
    @pytest.mark.asyncio
    async def test_concurrent_triggers_issue_a_single_fetch(
        self, transport, dispatcher, make_entity, page_factory, let_run
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 5)
        gate = transport.hold()
        controller, store = _controller(transport, dispatcher)

        tasks = [asyncio.create_task(controller.load_next_page()) for _ in range(5)]
        await let_run()

        assert isinstance(controller.state, Loading)
        assert len(transport.list_calls) == 1
        assert controller.in_flight == 1

        gate.set()
        await asyncio.gather(*tasks)

        assert transport.max_list_in_flight == 1
        assert len(transport.list_calls) == 1
        assert len(store) == 1
        assert controller.state == Idle(1, False)


class TestExhaustion:
    @pytest.mark.asyncio
    async def test_last_page_stops_further_requests(self, transport, dispatcher, make_entity, page_factory):
        transport.pages[0] = page_factory([make_entity(1, "Agumon"), make_entity(2, "Gabumon")], 0, 1)
        controller, store = _controller(transport, dispatcher)

        await controller.load_next_page()
        assert controller.exhausted

        snapshot = store.snapshot()
        state = await controller.load_next_page()
        await controller.load_next_page()

        assert state == Idle(1, True)
        assert len(transport.list_calls) == 1
        assert store.snapshot() == snapshot

    @pytest.mark.asyncio
    async def test_empty_catalog_is_exhausted(self, transport, dispatcher, page_factory):
        transport.pages[0] = page_factory([], 0, 0)
        controller, store = _controller(transport, dispatcher)

        await controller.load_next_page()

        assert controller.exhausted
        assert len(store) == 0


class TestFailureAndRetry:
    @pytest.mark.asyncio
    async def test_failure_keeps_cursor_and_retry_resumes_same_page(
        self, transport, dispatcher, make_entity, page_factory
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 3)
        transport.pages[1] = ConnectivityError("https://digi-api.com", "offline")
        failures = []
        controller, store = _controller(transport, dispatcher, on_failure=failures.append)

        await controller.load_next_page()
        state = await controller.load_next_page()

        assert isinstance(state, Failed)
        assert state.page == 1
        assert state.retryable
        assert failures == [state.error]
        assert len(store) == 1

        transport.pages[1] = page_factory([make_entity(2, "Gabumon")], 1, 3)
        state = await controller.retry()

        assert state == Idle(2, False)
        assert [item.id for item in store] == [1, 2]
        assert [call[0] for call in transport.list_calls] == [0, 1, 1]

    @pytest.mark.asyncio
    async def test_next_trigger_after_failure_reenters_loading(self, transport, dispatcher, make_entity, page_factory):
        transport.pages[0] = RequestTimeoutError("https://digi-api.com", 30)
        controller, _ = _controller(transport, dispatcher)

        assert isinstance(await controller.load_next_page(), Failed)
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 2)

        assert await controller.load_next_page() == Idle(1, False)

    @pytest.mark.asyncio
    async def test_unexpected_transport_exception_becomes_failed(
        self, transport, dispatcher, make_entity, page_factory
    ):
        boom = RuntimeError("boom")
        transport.pages[0] = boom
        controller, store = _controller(transport, dispatcher)

        state = await controller.load_next_page()

        assert isinstance(state, Failed)
        assert isinstance(state.error, UnexpectedTransportError)
        assert state.error.cause is boom
        assert controller.in_flight == 0

        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 2)
        assert await controller.retry() == Idle(1, False)
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_leave_controller_loading(
        self, transport, dispatcher, make_entity, page_factory, let_run
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 2)
        gate = transport.hold()
        controller, store = _controller(transport, dispatcher)

        task = asyncio.create_task(controller.load_next_page())
        await let_run()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        gate.set()
        await let_run()

        assert controller.state == Idle(1, False)
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_retry_outside_failed_is_a_noop(self, transport, dispatcher):
        controller, _ = _controller(transport, dispatcher)

        assert await controller.retry() == Idle(0, False)
        assert transport.list_calls == []


class TestStaleCompletions:
    @pytest.mark.asyncio
    async def test_invalidated_request_is_discarded(
        self, transport, dispatcher, make_entity, page_factory, let_run
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 3)
        gate = transport.hold()
        controller, store = _controller(transport, dispatcher)

        task = asyncio.create_task(controller.load_next_page())
        await let_run()
        await dispatcher.run(controller.invalidate)
        gate.set()
        state = await task

        assert state == Idle(0, False)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_guard_suspends_loading(self, transport, dispatcher):
        controller, _ = _controller(transport, dispatcher, guard=lambda: False)

        assert await controller.load_next_page() == Idle(0, False)
        assert transport.list_calls == []

    @pytest.mark.asyncio
    async def test_stale_completion_restores_state_before_load(
        self, transport, dispatcher, make_entity, page_factory, let_run
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 3)
        transport.pages[1] = page_factory([make_entity(2, "Gabumon")], 1, 3)
        controller, store = _controller(transport, dispatcher)
        await controller.load_next_page()

        gate = transport.hold()
        task = asyncio.create_task(controller.load_next_page())
        await let_run()
        await dispatcher.run(controller.invalidate)
        gate.set()

        assert await task == Idle(1, False)
        assert [item.id for item in store] == [1]

    @pytest.mark.asyncio
    async def test_reset_during_load_waits_and_first_page_can_reload(
        self, transport, dispatcher, make_entity, page_factory, let_run
    ):
        transport.pages[0] = page_factory([make_entity(1, "Agumon")], 0, 3)
        transport.pages[1] = page_factory([make_entity(2, "Gabumon")], 1, 3)
        controller, store = _controller(transport, dispatcher)
        await controller.load_next_page()

        gate = transport.hold()
        task = asyncio.create_task(controller.load_next_page())
        await let_run()
        reset = asyncio.create_task(controller.reset())
        await let_run()
        assert not reset.done()

        gate.set()
        await asyncio.gather(task, reset)

        assert controller.state == Idle(0, False)
        assert len(store) == 0

        assert await controller.load_next_page() == Idle(1, False)
        assert [item.id for item in store] == [1]
        assert [call[0] for call in transport.list_calls] == [0, 1, 0]
