#=============================================================================
# File        : tests/test_interceptor.py
# Project     : timerprof v1.0
# Component   : Timer Interceptor Test Suite
# Description : Recording, active-timer tracking and verbatim restoration
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import pytest

from timerprof import timers as process_timers
from timerprof.aggregator import UNKNOWN_CALL_SITE, TimerKind
from timerprof.interceptor import CAPTURE_DEPTH, TimerInterceptor
from timerprof.timers import TimerPrimitives, default_primitives

from conftest import python_trace

POLL_TRACE = python_trace(("/srv/app/poller.py", 42, "poll"))


def _noop():
    pass


@pytest.fixture
def interceptor(fake_timers):
    interceptor = TimerInterceptor(fake_timers.primitives(), capture=lambda: POLL_TRACE)
    yield interceptor
    interceptor.uninstall()


class TestScheduling:
    """Instrumented schedule calls."""

    def test_schedule_once_records_and_returns_original_handle(self, interceptor, fake_timers):
        timers = interceptor.install()
        handle = timers.schedule_once(0.5, _noop)

        assert handle in fake_timers.once, "Handle must be the original primitive's handle"
        record = interceptor.aggregator.get("poller.py:42 (poll)")
        assert record.count == 1
        assert record.kind is TimerKind.SINGLE_SHOT
        assert interceptor.active_timers == {handle}

    def test_arguments_are_passed_through(self, interceptor, fake_timers):
        timers = interceptor.install()
        seen = []
        handle = timers.schedule_once(0.25, lambda *args: seen.extend(args), "a", 2)

        assert fake_timers.once[handle][0] == 0.25
        fake_timers.fire(handle)
        assert seen == ["a", 2]

        handle = timers.schedule_repeating(1.5, _noop, "x")
        assert fake_timers.repeating[handle] == (1.5, _noop, ("x",))

    def test_repeating_call_site_scheduled_five_times(self, interceptor):
        timers = interceptor.install()
        for _ in range(5):
            timers.schedule_repeating(0.1, _noop)

        records = interceptor.aggregator.records()
        assert len(records) == 1
        assert records[0].kind is TimerKind.REPEATING
        assert records[0].count == 5

    def test_three_distinct_call_sites_in_insertion_order(self, fake_timers):
        traces = iter([
            python_trace(("/app/a.py", 1, "first")),
            python_trace(("/app/b.py", 2, "second")),
            python_trace(("/app/c.py", 3, "third")),
        ])
        interceptor = TimerInterceptor(fake_timers.primitives(), capture=lambda: next(traces))
        timers = interceptor.install()
        for _ in range(3):
            timers.schedule_once(0.01, _noop)
        interceptor.uninstall()

        records = interceptor.aggregator.records()
        assert [r.signature for r in records] == ["a.py:1 (first)", "b.py:2 (second)", "c.py:3 (third)"]
        assert all(r.count == 1 for r in records)

    def test_unparseable_trace_uses_sentinel(self, fake_timers):
        interceptor = TimerInterceptor(fake_timers.primitives(), capture=lambda: "???\n???")
        timers = interceptor.install()
        timers.schedule_once(0.1, _noop)
        timers.schedule_once(0.1, _noop)

        assert interceptor.aggregator.get(UNKNOWN_CALL_SITE).count == 2

    def test_recording_failure_does_not_block_scheduling(self, fake_timers):
        def broken_capture():
            raise RuntimeError("no stack")

        interceptor = TimerInterceptor(fake_timers.primitives(), capture=broken_capture)
        timers = interceptor.install()
        handle = timers.schedule_repeating(0.1, _noop)

        assert handle in fake_timers.repeating
        assert len(interceptor.aggregator) == 0

    def test_real_stack_attributes_calling_test(self, fake_timers):
        interceptor = TimerInterceptor(fake_timers.primitives())
        timers = interceptor.install()
        timers.schedule_once(0.1, _noop)
        interceptor.uninstall()

        (record,) = interceptor.aggregator.records()
        assert record.signature.startswith("test_interceptor.py:")
        assert record.signature.endswith("(test_real_stack_attributes_calling_test)")
        assert record.caller.startswith("test_real_stack_attributes_calling_test (test_interceptor.py:")

    def test_recorded_stack_is_bounded(self, fake_timers):
        interceptor = TimerInterceptor(fake_timers.primitives())
        timers = interceptor.install()

        def deep(depth):
            if depth:
                return deep(depth - 1)
            return timers.schedule_once(0.1, _noop)

        deep(20)
        interceptor.uninstall()

        (record,) = interceptor.aggregator.records()
        assert len(record.stack.splitlines()) == CAPTURE_DEPTH
        assert record.signature.endswith("(deep)")


class TestActiveTimers:
    """Active-timer set maintenance."""

    def test_cancel_removes_handle(self, interceptor, fake_timers):
        timers = interceptor.install()
        once = timers.schedule_once(1.0, _noop)
        repeating = timers.schedule_repeating(1.0, _noop)

        timers.cancel_once(once)
        timers.cancel_repeating(repeating)

        assert interceptor.active_count == 0
        assert fake_timers.cancelled == [once, repeating], "Cancellation must reach the original primitive"

    def test_cancel_unknown_handle_is_noop(self, interceptor, fake_timers):
        timers = interceptor.install()
        kept = timers.schedule_repeating(1.0, _noop)

        timers.cancel_once(9999)
        timers.cancel_repeating(None)
        timers.cancel_once(kept + 1000)

        assert interceptor.active_timers == {kept}

    def test_double_cancel_is_noop(self, interceptor):
        timers = interceptor.install()
        handle = timers.schedule_once(1.0, _noop)
        timers.cancel_once(handle)
        timers.cancel_once(handle)
        assert interceptor.active_count == 0

    def test_fired_single_shot_is_no_longer_active(self, interceptor, fake_timers):
        timers = interceptor.install()
        handle = timers.schedule_once(0.1, _noop)
        assert interceptor.active_count == 1

        fake_timers.fire(handle)
        assert interceptor.active_count == 0, "A single-shot timer that ran is not a leak"

    def test_fired_repeating_timer_stays_active(self, interceptor, fake_timers):
        timers = interceptor.install()
        handle = timers.schedule_repeating(0.1, _noop)
        fake_timers.fire(handle)
        fake_timers.fire(handle)
        assert interceptor.active_timers == {handle}

    def test_synchronously_fired_single_shot_is_not_tracked(self):
        def immediate(delay, callback, *args):
            callback(*args)
            return "done"

        primitives = TimerPrimitives(immediate, immediate, lambda h: None, lambda h: None)
        interceptor = TimerInterceptor(primitives, capture=lambda: POLL_TRACE)
        timers = interceptor.install()

        assert timers.schedule_once(0, _noop) == "done"
        assert interceptor.active_count == 0


class TestLifecycle:
    """Install / uninstall and namespace restoration."""

    def test_uninstall_restores_namespace_verbatim(self, fake_namespace):
        before = TimerPrimitives.from_namespace(fake_namespace)
        interceptor = TimerInterceptor(namespace=fake_namespace, capture=lambda: POLL_TRACE)

        instrumented = interceptor.install()
        assert TimerPrimitives.from_namespace(fake_namespace).same_as(instrumented)
        fake_namespace.schedule_once(0.1, _noop)

        interceptor.uninstall()
        after = TimerPrimitives.from_namespace(fake_namespace)
        assert after.same_as(before), "Primitives must be the identical objects after uninstall"
        assert interceptor.aggregator.get("poller.py:42 (poll)").count == 1

    def test_default_namespace_is_process_timers(self):
        before = default_primitives()
        with TimerInterceptor() as instrumented:
            assert process_timers.schedule_once is instrumented.schedule_once
            assert process_timers.cancel_repeating is instrumented.cancel_repeating
        assert default_primitives().same_as(before)

    def test_uninstall_without_install_is_safe(self, fake_namespace):
        interceptor = TimerInterceptor(namespace=fake_namespace)
        assert interceptor.uninstall() is None
        interceptor.install()
        interceptor.uninstall()
        assert interceptor.uninstall() is None

    def test_double_install_is_rejected(self, interceptor):
        interceptor.install()
        with pytest.raises(RuntimeError, match="already installed"):
            interceptor.install()

    def test_second_interceptor_on_same_namespace_is_rejected(self, fake_namespace):
        first = TimerInterceptor(namespace=fake_namespace)
        second = TimerInterceptor(namespace=fake_namespace)
        first.install()
        try:
            with pytest.raises(RuntimeError, match="already intercepted"):
                second.install()
        finally:
            first.uninstall()
        second.install()
        second.uninstall()

    def test_context_manager_restores_on_error(self, fake_namespace):
        before = TimerPrimitives.from_namespace(fake_namespace)
        with pytest.raises(ZeroDivisionError):
            with TimerInterceptor(namespace=fake_namespace) as timers:
                timers.schedule_once(0.1, _noop)
                1 / 0
        assert TimerPrimitives.from_namespace(fake_namespace).same_as(before)

    def test_stale_instrumented_timers_delegate_without_recording(self, interceptor, fake_timers):
        timers = interceptor.install()
        timers.schedule_once(0.1, _noop)
        interceptor.uninstall()

        handle = timers.schedule_once(0.1, _noop)
        assert handle in fake_timers.once
        assert interceptor.aggregator.total_calls == 1

    def test_primitives_and_namespace_are_exclusive(self, fake_timers, fake_namespace):
        with pytest.raises(ValueError):
            TimerInterceptor(fake_timers.primitives(), namespace=fake_namespace)

    def test_originals_requires_install(self, interceptor):
        with pytest.raises(RuntimeError):
            interceptor.originals
