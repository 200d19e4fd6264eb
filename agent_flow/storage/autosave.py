"""
Debounced auto-save.

Each change to a workflow (re)starts a timer for that workflow id; the save
happens once the workflow has been quiet for ``delay`` seconds, using the
latest snapshot.  At most one timer is live per workflow id.
"""

from __future__ import annotations

import threading
from logging import getLogger
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from ..config import get_settings
from ..workflow.models import Workflow
from .store import WorkflowStorage

logger = getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class TimerScheduler:
    """ Runs callbacks on daemon ``threading.Timer`` threads. """

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AutoSaver:
    def __init__(self, storage: WorkflowStorage, delay: Optional[float] = None,
                 scheduler: Optional[Scheduler] = None,
                 on_error: Optional[Callable[[Workflow, Exception], None]] = None) -> None:
        self.storage = storage
        self.delay = get_settings().autosave_delay if delay is None else delay
        self.scheduler = scheduler or TimerScheduler()
        self.on_error = on_error
        self.last_error: Optional[Exception] = None
        self._lock = threading.Lock()
        # workflow id -> (timer, latest snapshot, generation)
        self._pending: Dict[str, Tuple[TimerHandle, Workflow, int]] = {}
        self._generation = 0

    def notify(self, workflow: Workflow) -> None:
        """ Record a change; replaces any save already scheduled for this workflow. """
        with self._lock:
            self._generation += 1
            generation = self._generation
            existing = self._pending.pop(workflow.id, None)
            if existing is not None:
                existing[0].cancel()
            handle = self.scheduler.schedule(
                self.delay, lambda: self._fire(workflow.id, generation)
            )
            self._pending[workflow.id] = (handle, workflow, generation)

    def flush(self, workflow_id: Optional[str] = None) -> None:
        """ Save pending snapshots now instead of waiting for their timers. """
        with self._lock:
            ids = [workflow_id] if workflow_id is not None else list(self._pending)
            entries = [self._pending.pop(i) for i in ids if i in self._pending]
        for handle, workflow, _ in entries:
            handle.cancel()
            self._save(workflow)

    def cancel(self, workflow_id: Optional[str] = None) -> None:
        """ Drop pending saves without writing them. """
        with self._lock:
            ids = [workflow_id] if workflow_id is not None else list(self._pending)
            for i in ids:
                entry = self._pending.pop(i, None)
                if entry is not None:
                    entry[0].cancel()

    def pending(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def close(self) -> None:
        self.flush()

    def _fire(self, workflow_id: str, generation: int) -> None:
        with self._lock:
            entry = self._pending.get(workflow_id)
            # A newer notify() replaced this timer after it had already fired.
            if entry is None or entry[2] != generation:
                return
            del self._pending[workflow_id]
        self._save(entry[1])

    def _save(self, workflow: Workflow) -> None:
        try:
            self.storage.save(workflow)
            self.last_error = None
        except Exception as e:
            self.last_error = e
            logger.error(f"Auto-save failed for workflow {workflow.id}: {e}")
            if self.on_error is not None:
                self.on_error(workflow, e)
