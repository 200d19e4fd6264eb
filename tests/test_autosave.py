"""Tests for debounced auto-save."""

import time

from agent_flow.storage.autosave import AutoSaver
from agent_flow.storage.backends import MemoryBackend
from agent_flow.storage.store import WorkflowStorage
from agent_flow.workflow.models import Workflow


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Collects timers; tests fire them explicitly."""

    def __init__(self):
        self.timers = []

    def schedule(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self):
        for timer in list(self.timers):
            if not timer.cancelled:
                timer.callback()


class CountingStorage(WorkflowStorage):
    def __init__(self):
        super().__init__(MemoryBackend(), key="test-workflows")
        self.saved = []

    def save(self, workflow):
        self.saved.append(workflow)
        super().save(workflow)


def make_workflow(name, workflow_id="wf-1"):
    return Workflow.model_validate({"id": workflow_id, "name": name, "nodes": []})


def test_rapid_changes_produce_one_save_with_latest_value():
    storage = CountingStorage()
    scheduler = ManualScheduler()
    saver = AutoSaver(storage, delay=2.0, scheduler=scheduler)

    for name in ["one", "two", "three"]:
        saver.notify(make_workflow(name))

    assert storage.saved == []
    assert [t.cancelled for t in scheduler.timers] == [True, True, False]
    assert scheduler.timers[-1].delay == 2.0

    scheduler.fire_all()
    assert [w.name for w in storage.saved] == ["three"]
    assert storage.load("wf-1").name == "three"
    assert saver.pending() == []


def test_stale_timer_does_not_save():
    """A timer that fires after being replaced is ignored."""
    storage = CountingStorage()
    scheduler = ManualScheduler()
    saver = AutoSaver(storage, delay=1.0, scheduler=scheduler)

    saver.notify(make_workflow("old"))
    stale = scheduler.timers[0]
    saver.notify(make_workflow("new"))

    stale.callback()
    assert storage.saved == []


def test_timers_are_per_workflow():
    storage = CountingStorage()
    scheduler = ManualScheduler()
    saver = AutoSaver(storage, delay=1.0, scheduler=scheduler)

    saver.notify(make_workflow("a", "wf-a"))
    saver.notify(make_workflow("b", "wf-b"))
    assert sorted(saver.pending()) == ["wf-a", "wf-b"]

    scheduler.fire_all()
    assert sorted(w.id for w in storage.saved) == ["wf-a", "wf-b"]


def test_flush_saves_immediately():
    storage = CountingStorage()
    scheduler = ManualScheduler()
    saver = AutoSaver(storage, delay=5.0, scheduler=scheduler)

    saver.notify(make_workflow("draft"))
    saver.flush()

    assert [w.name for w in storage.saved] == ["draft"]
    assert scheduler.timers[0].cancelled is True
    scheduler.fire_all()
    assert len(storage.saved) == 1


def test_cancel_drops_pending_save():
    storage = CountingStorage()
    scheduler = ManualScheduler()
    saver = AutoSaver(storage, delay=1.0, scheduler=scheduler)

    saver.notify(make_workflow("draft"))
    saver.cancel("wf-1")
    scheduler.fire_all()

    assert storage.saved == []
    assert saver.pending() == []


def test_save_failure_is_reported_not_raised():
    class FailingStorage(WorkflowStorage):
        def save(self, workflow):
            raise RuntimeError("disk full")

    failures = []
    scheduler = ManualScheduler()
    saver = AutoSaver(FailingStorage(MemoryBackend()), delay=1.0, scheduler=scheduler,
                      on_error=lambda wf, e: failures.append((wf.id, str(e))))

    saver.notify(make_workflow("draft"))
    scheduler.fire_all()

    assert failures == [("wf-1", "disk full")]
    assert isinstance(saver.last_error, RuntimeError)

    # the saver keeps working after a failure
    saver.notify(make_workflow("again"))
    assert saver.pending() == ["wf-1"]


def test_real_timer_saves_after_delay():
    storage = CountingStorage()
    saver = AutoSaver(storage, delay=0.05)

    saver.notify(make_workflow("one"))
    saver.notify(make_workflow("two"))

    deadline = time.time() + 2.0
    while not storage.saved and time.time() < deadline:
        time.sleep(0.01)
    time.sleep(0.1)

    assert [w.name for w in storage.saved] == ["two"]


class SlowBackend(MemoryBackend):
    """Reads take long enough for timer threads to overlap."""

    def get_item(self, key):
        time.sleep(0.05)
        return super().get_item(key)


def test_overlapping_timers_keep_every_workflow():
    storage = WorkflowStorage(SlowBackend(), key="test-workflows")
    saver = AutoSaver(storage, delay=0.05)

    saver.notify(make_workflow("a", "wf-a"))
    saver.notify(make_workflow("b", "wf-b"))

    deadline = time.time() + 3.0
    while saver.pending() and time.time() < deadline:
        time.sleep(0.01)
    time.sleep(0.3)

    assert sorted(s.workflow.id for s in storage.load_all()) == ["wf-a", "wf-b"]


def test_flush_and_timer_saves_do_not_clobber_each_other():
    storage = WorkflowStorage(SlowBackend(), key="test-workflows")
    saver = AutoSaver(storage, delay=0.0)

    saver.notify(make_workflow("timer", "wf-timer"))
    saver.notify(make_workflow("flushed", "wf-flush"))
    saver.flush("wf-flush")
    time.sleep(0.4)

    assert storage.exists("wf-timer")
    assert storage.exists("wf-flush")
