"""
Editing and execution state for one open workflow.

The session is the only writer of the workflow it holds: edits and execution
status updates both go through the pure helpers in ``workflow.models`` and
replace the held snapshot.  Every change is handed to the auto-saver, if any.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Callable, Dict, Optional, Set

from .agents import catalog
from .errors import ExecutionInProgressError, WorkflowValidationError
from .storage.autosave import AutoSaver
from .workflow.conditions import filter_schema_fields, get_hidden_fields
from .workflow.executor import ExecutionEngine, ExecutionProgress, ExecutionResult
from .workflow.merge import merge_global_config
from .workflow.models import (
    AgentSchema,
    FormData,
    Workflow,
    parse_workflow,
    update_global_config,
    update_node_form_data,
    update_node_status,
)

logger = getLogger(__name__)

SchemaLookup = Callable[[str], Optional[AgentSchema]]


@dataclass
class NodeRunState:
    status: str
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    error: Optional[str] = None


class WorkflowSession:
    def __init__(self, workflow: Workflow, engine: Optional[ExecutionEngine] = None,
                 autosaver: Optional[AutoSaver] = None,
                 schema_lookup: Optional[SchemaLookup] = None,
                 on_progress: Optional[Callable[[ExecutionProgress], None]] = None):
        self._workflow = workflow
        self.engine = engine or ExecutionEngine()
        self.autosaver = autosaver
        self.schema_lookup = schema_lookup or catalog.get_agent_schema
        self.on_progress = on_progress

        self.node_statuses: Dict[str, NodeRunState] = {}
        self.result: Optional[ExecutionResult] = None
        self.error: Optional[str] = None

    @property
    def workflow(self) -> Workflow:
        return self._workflow

    @property
    def is_executing(self) -> bool:
        return self.engine.is_executing

    # ── Editing ──

    def update_node_form_data(self, node_id: str, form_data: FormData) -> Workflow:
        self._require_node(node_id)
        return self._set(update_node_form_data(self._workflow, node_id, form_data))

    def update_global_config(self, config: Optional[FormData]) -> Workflow:
        return self._set(update_global_config(self._workflow, config))

    def replace_workflow(self, raw: Dict[str, Any]) -> Workflow:
        """ Replace the whole workflow from edited JSON; rejected edits change nothing. """
        workflow = parse_workflow(raw)
        if workflow.id != self._workflow.id:
            raise WorkflowValidationError(
                [f"Workflow ID cannot change ({self._workflow.id} -> {workflow.id})"]
            )
        return self._set(workflow)

    # ── Derived views ──

    def agent_schema(self, node_id: str) -> Optional[AgentSchema]:
        return self.schema_lookup(self._require_node(node_id).agent_id)

    def effective_form_data(self, node_id: str) -> FormData:
        """ Node form data with the global configuration cascaded in. """
        node = self._require_node(node_id)
        schema = self.schema_lookup(node.agent_id)
        if schema is None:
            return dict(node.form_data or {})
        return merge_global_config(self._workflow.global_config, node.form_data, schema)

    def hidden_fields(self, node_id: str) -> Set[str]:
        node = self._require_node(node_id)
        return get_hidden_fields(node.conditions, self.effective_form_data(node_id))

    def visible_schema(self, node_id: str) -> Optional[AgentSchema]:
        schema = self.agent_schema(node_id)
        if schema is None:
            return None
        return filter_schema_fields(schema, self.hidden_fields(node_id))

    # ── Execution ──

    def execute(self) -> ExecutionResult:
        if self.engine.is_executing:
            raise ExecutionInProgressError()

        self.node_statuses = {}
        self.result = None
        self.error = None

        result = self.engine.run(self._workflow, self._handle_progress)
        self.result = result
        if not result.success:
            self.error = ", ".join(result.errors.values())
            logger.warning(f"Workflow {self._workflow.id} execution failed: {self.error}")
        return result

    def cancel(self) -> None:
        self.engine.cancel()

    def reset_execution(self) -> None:
        self.node_statuses = {}
        self.result = None
        self.error = None

    # ── Internals ──

    def _handle_progress(self, progress: ExecutionProgress) -> None:
        self.node_statuses[progress.node_id] = NodeRunState(
            status=progress.status,
            start_time=progress.start_time,
            end_time=progress.end_time,
            error=progress.error,
        )
        self._set(update_node_status(self._workflow, progress.node_id, progress.status))
        if self.on_progress is not None:
            self.on_progress(progress)

    def _set(self, workflow: Workflow) -> Workflow:
        self._workflow = workflow
        if self.autosaver is not None:
            self.autosaver.notify(workflow)
        return workflow

    def _require_node(self, node_id: str):
        node = self._workflow.get_node(node_id)
        if node is None:
            raise KeyError(f"Unknown node: {node_id}")
        return node
