from __future__ import annotations

from core.events import EventQueue


def test_nothing_runs_until_flush():
    queue = EventQueue()
    seen: list[str] = []
    queue.schedule(seen.append, "a")

    assert seen == []
    assert len(queue) == 1
    assert queue.flush() == 1
    assert seen == ["a"]
    assert len(queue) == 0


def test_runs_in_order_including_nested_schedules():
    queue = EventQueue()
    seen: list[str] = []

    def first() -> None:
        seen.append("first")
        queue.schedule(seen.append, "nested")

    queue.schedule(first)
    queue.schedule(seen.append, "second")

    assert queue.flush() == 3
    assert seen == ["first", "second", "nested"]


def test_callbacks_read_state_at_run_time():
    queue = EventQueue()
    state = {"value": 1}
    seen: list[int] = []
    queue.schedule(lambda: seen.append(state["value"]))
    state["value"] = 2

    queue.flush()
    assert seen == [2]


def test_clear_drops_pending():
    queue = EventQueue()
    queue.schedule(print, "never")
    queue.clear()
    assert queue.flush() == 0
