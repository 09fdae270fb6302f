#=============================================================================
# File        : tests/conftest.py
# Project     : timerprof v1.0
# Component   : Shared Test Fixtures
# Description : Deterministic fake timer primitives and synthetic traces
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import itertools
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add timerprof to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))

from timerprof.timers import TimerPrimitives


INTERCEPTOR_LINE = '  File "/opt/app/timerprof/interceptor.py", line 150, in schedule_once\n'


def python_trace(*frames):
    """
    Build traceback.format_list() style text, innermost first, source lines included.

    Each frame is (path, line, function); the interceptor frame is prepended.
    """
    lines = [INTERCEPTOR_LINE, "    interceptor._record(TimerKind.SINGLE_SHOT)\n"]
    for path, line, function in frames:
        lines.append(f'  File "{path}", line {line}, in {function}\n')
        lines.append("    timers.schedule_once(0.1, callback)\n")
    return "".join(lines)


def v8_trace(*frames):
    """Build a V8-style trace whose first line is the interceptor frame."""
    lines = ["    at trackedScheduleOnce (/opt/app/profiler.js:40:11)"]
    lines.extend(f"    at {frame}" for frame in frames)
    return "\n".join(lines)


class FakeTimers:
    """
    In-memory timer primitives with integer handles and manual firing.

    Nothing runs until a test calls fire().
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.once = {}
        self.repeating = {}
        self.cancelled = []

    def schedule_once(self, delay, callback, *args):
        handle = next(self._ids)
        self.once[handle] = (delay, callback, args)
        return handle

    def schedule_repeating(self, interval, callback, *args):
        handle = next(self._ids)
        self.repeating[handle] = (interval, callback, args)
        return handle

    def cancel_once(self, handle):
        self.cancelled.append(handle)
        self.once.pop(handle, None)

    def cancel_repeating(self, handle):
        self.cancelled.append(handle)
        self.repeating.pop(handle, None)

    def fire(self, handle):
        """Run a pending timer's callback (single-shot timers are consumed)."""
        if handle in self.once:
            _, callback, args = self.once.pop(handle)
        else:
            _, callback, args = self.repeating[handle]
        return callback(*args)

    def primitives(self):
        return TimerPrimitives(
            schedule_once=self.schedule_once,
            schedule_repeating=self.schedule_repeating,
            cancel_once=self.cancel_once,
            cancel_repeating=self.cancel_repeating,
        )


@pytest.fixture
def fake_timers():
    return FakeTimers()


@pytest.fixture
def fake_namespace(fake_timers):
    """A module-like object whose attributes are fixed callable objects."""
    primitives = fake_timers.primitives()
    return SimpleNamespace(
        schedule_once=primitives.schedule_once,
        schedule_repeating=primitives.schedule_repeating,
        cancel_once=primitives.cancel_once,
        cancel_repeating=primitives.cancel_repeating,
    )
