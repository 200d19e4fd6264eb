"""
Sequential workflow execution.

Nodes run strictly in workflow order.  Every node moves through
pending -> running -> completed | failed, and the first failure halts the run.
"""

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional

from ..agents.base import PREVIOUS_OUTPUTS_KEY, AgentExecutor
from ..agents.registry import ExecutorRegistry
from ..errors import ApprovalRejectedError, ExecutionInProgressError, ExecutorError
from .models import FormData, Workflow, WorkflowNode

logger = getLogger(__name__)


@dataclass
class ExecutionProgress:
    """ One node status transition.  Times are epoch milliseconds. """
    node_id: str
    status: str  # pending, running, completed, failed
    output: Optional[FormData] = None
    error: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None


@dataclass
class ExecutionResult:
    success: bool
    outputs: Dict[str, FormData] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    total_time_ms: int = 0
    cancelled: bool = False


ProgressCallback = Callable[[ExecutionProgress], None]
Approver = Callable[[WorkflowNode, FormData], bool]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExecutionEngine:
    """
    Runs workflows against a registry of agent executors.

    The engine keeps no workflow state between runs.  A single engine runs one
    workflow at a time; ``cancel()`` stops a run before its next node starts.
    Nodes flagged ``requires_approval`` are passed to ``approver`` after they
    succeed; without an approver their output is accepted.
    """

    def __init__(self, registry: Optional[ExecutorRegistry] = None,
                 approver: Optional[Approver] = None):
        self.registry = registry if registry is not None else ExecutorRegistry()
        self.approver = approver
        self.execution_log: List[Dict[str, Any]] = []
        self._executing = False
        self._cancel_requested = False

    # ── Registry ──

    def register_executor(self, executor: AgentExecutor) -> None:
        self.registry.register(executor)

    def has_executor(self, agent_id: str) -> bool:
        return self.registry.has(agent_id)

    def executor_count(self) -> int:
        return len(self.registry)

    # ── Run control ──

    @property
    def is_executing(self) -> bool:
        return self._executing

    def cancel(self) -> None:
        """ Ask the current run to stop before its next node. """
        if self._executing:
            self._cancel_requested = True

    def run(self, workflow: Workflow, on_progress: Optional[ProgressCallback] = None) -> ExecutionResult:
        if self._executing:
            raise ExecutionInProgressError()

        self._executing = True
        self._cancel_requested = False
        self.execution_log = []
        try:
            return self._run(workflow.model_copy(deep=True), on_progress or (lambda _p: None))
        finally:
            self._executing = False
            self._cancel_requested = False

    # ── Internals ──

    def _run(self, snapshot: Workflow, emit: ProgressCallback) -> ExecutionResult:
        started = _now_ms()
        outputs: Dict[str, FormData] = {}
        errors: Dict[str, str] = {}
        cancelled = False

        self._log(f"Running workflow {snapshot.name} ({snapshot.id}) with {len(snapshot.nodes)} nodes")

        for node in snapshot.nodes:
            if self._cancel_requested:
                cancelled = True
                self._log(f"Run cancelled before node {node.id}")
                break

            node_started = _now_ms()
            emit(ExecutionProgress(node_id=node.id, status="pending", start_time=node_started))
            emit(ExecutionProgress(node_id=node.id, status="running", start_time=node_started))

            try:
                output = self._execute_node(node, outputs)
            except Exception as e:
                message = str(e) or type(e).__name__
                errors[node.id] = message
                self._log(f"Node {node.id} ({node.agent_id}) failed: {message}", level="error")
                emit(ExecutionProgress(node_id=node.id, status="failed", error=message,
                                       start_time=node_started, end_time=_now_ms()))
                break

            outputs[node.id] = output
            self._log(f"Node {node.id} ({node.agent_id}) completed")
            emit(ExecutionProgress(node_id=node.id, status="completed", output=output,
                                   start_time=node_started, end_time=_now_ms()))

        total = _now_ms() - started
        self._log(f"Workflow {snapshot.id} finished in {total} ms, errors={len(errors)}")
        return ExecutionResult(
            success=not errors,
            outputs=outputs,
            errors=errors,
            total_time_ms=total,
            cancelled=cancelled,
        )

    def _execute_node(self, node: WorkflowNode, previous: Dict[str, FormData]) -> FormData:
        executor = self.registry.get(node.agent_id)

        node_input: FormData = dict(node.form_data or {})
        node_input[PREVIOUS_OUTPUTS_KEY] = dict(previous)

        output = executor.execute(node_input)
        if not isinstance(output, dict):
            raise ExecutorError(
                f"Executor for agent {node.agent_id} returned {type(output).__name__}, expected a mapping"
            )

        if node.requires_approval and self.approver is not None:
            if not self.approver(node, output):
                raise ApprovalRejectedError(node.id)
        return output

    def _log(self, message: str, level: str = "info") -> None:
        getattr(logger, level)(message)
        self.execution_log.append({"ts": time.time(), "level": level, "message": message})
