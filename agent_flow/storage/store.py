"""
All workflows stored in one versioned envelope under a single key.

Envelope layout::

    {"version": "1.0",
     "workflows": {id: <workflow>},
     "lastModified": {id: <ISO-8601>}}

Saves overwrite (last writer wins).  Every backend or decoding failure is
raised as ``StorageError``.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Dict, List, Optional

from ..config import get_settings
from ..errors import AgentFlowError, StorageError, WorkflowNotFoundError, WorkflowValidationError
from ..workflow.models import Workflow, parse_workflow, utc_now_iso
from .backends import FileBackend, KeyValueBackend, MemoryBackend

logger = getLogger(__name__)

STORAGE_KEY = "agent-flow-workflows"
STORAGE_VERSION = "1.0"


@dataclass
class StoredWorkflow:
    workflow: Workflow
    last_modified: Optional[str] = None


def _empty_envelope() -> Dict[str, Any]:
    return {"version": STORAGE_VERSION, "workflows": {}, "lastModified": {}}


def default_backend() -> KeyValueBackend:
    settings = get_settings()
    if settings.storage_dir is not None:
        return FileBackend(settings.storage_dir)
    return MemoryBackend()


class WorkflowStorage:
    """ Persist and load Workflow objects through a key-value backend. """

    def __init__(self, backend: Optional[KeyValueBackend] = None, key: Optional[str] = None) -> None:
        self._backend = backend if backend is not None else default_backend()
        self._key = key or get_settings().storage_key or STORAGE_KEY
        # Serializes read-modify-write of the envelope across threads.
        self._lock = threading.Lock()

    # ── CRUD ──

    def save(self, workflow: Workflow) -> None:
        """ Save (create or overwrite) a workflow snapshot. """
        with self._lock:
            data = self._read()
            data["workflows"][workflow.id] = workflow.to_dict()
            data["lastModified"][workflow.id] = utc_now_iso()
            self._write(data)
        logger.info(f"Workflow saved: {workflow.name} ({workflow.id})")

    def load(self, workflow_id: str) -> Optional[Workflow]:
        with self._lock:
            raw = self._read()["workflows"].get(workflow_id)
        if raw is None:
            return None
        return self._decode(workflow_id, raw)

    def load_all(self) -> List[StoredWorkflow]:
        with self._lock:
            data = self._read()
        return [
            StoredWorkflow(self._decode(workflow_id, raw), data["lastModified"].get(workflow_id))
            for workflow_id, raw in data["workflows"].items()
        ]

    def delete(self, workflow_id: str) -> bool:
        with self._lock:
            data = self._read()
            existed = data["workflows"].pop(workflow_id, None) is not None
            data["lastModified"].pop(workflow_id, None)
            if existed:
                self._write(data)
        if existed:
            logger.info(f"Workflow deleted: {workflow_id}")
        return existed

    def exists(self, workflow_id: str) -> bool:
        with self._lock:
            return workflow_id in self._read()["workflows"]

    def clear(self) -> None:
        """ Drop every stored workflow (the envelope is recreated on next access). """
        with self._lock:
            self._call(self._backend.remove_item, self._key)

    # ── Import / export ──

    def export_workflow(self, workflow_id: str) -> str:
        workflow = self.load(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return json.dumps(workflow.to_dict(), indent=2, ensure_ascii=False)

    def import_workflow(self, text: str) -> Workflow:
        """
        Parse workflow JSON, validate it and save it.
        Nothing is stored unless validation succeeds.
        """
        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise WorkflowValidationError([f"Invalid workflow JSON: {e}"]) from e

        workflow = parse_workflow(raw, require_nodes=False)
        self.save(workflow)
        return workflow

    # ── Internals ──

    def _read(self) -> Dict[str, Any]:
        text = self._call(self._backend.get_item, self._key)
        if text is None:
            data = _empty_envelope()
            self._write(data)
            return data

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt workflow storage under {self._key!r}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt workflow storage under {self._key!r}: not an object")

        if data.get("version") != STORAGE_VERSION:
            logger.warning(
                f"Workflow storage version {data.get('version')!r} != {STORAGE_VERSION!r}, reinitializing"
            )
            data = _empty_envelope()
            self._write(data)
            return data

        if not isinstance(data.get("workflows"), dict):
            raise StorageError(f"Corrupt workflow storage under {self._key!r}: bad 'workflows'")
        if not isinstance(data.get("lastModified"), dict):
            data["lastModified"] = {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self._call(self._backend.set_item, self._key, json.dumps(data, ensure_ascii=False))

    def _decode(self, workflow_id: str, raw: Any) -> Workflow:
        try:
            return parse_workflow(raw, require_nodes=False)
        except WorkflowValidationError as e:
            raise StorageError(f"Stored workflow {workflow_id} is invalid: {e}") from e

    def _call(self, fn, *args):
        try:
            return fn(*args)
        except AgentFlowError:
            raise
        except Exception as e:
            logger.error(f"Workflow storage failure: {e}")
            raise StorageError(f"Workflow storage unavailable: {e}") from e


def export_filename(workflow: Workflow) -> str:
    """ ``"GTM Content  Pipeline"`` -> ``"gtm-content-pipeline.json"`` """
    stem = re.sub(r"\s+", "-", (workflow.name or "").strip().lower())
    return f"{stem or 'workflow'}.json"
