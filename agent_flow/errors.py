""" Exception types shared by the workflow, storage and execution layers. """

from typing import List, Optional


class AgentFlowError(Exception):
    """ Base error.  ``kind`` is stable and safe to branch on. """

    kind = "error"


class WorkflowValidationError(AgentFlowError):
    """ A workflow (or workflow JSON) failed structural validation. """

    kind = "validation"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "Invalid workflow: " + "; ".join(self.errors))


class ExecutorError(AgentFlowError):
    """ An agent executor could not produce output for a node. """

    kind = "executor"


class NoExecutorRegisteredError(ExecutorError):
    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"No executor registered for agent: {agent_id}")


class ApprovalRejectedError(ExecutorError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Output for node {node_id} was rejected during approval")


class ExecutionInProgressError(ExecutorError):
    def __init__(self):
        super().__init__("Workflow execution already in progress")


class GenerationError(ExecutorError):
    """ The external generation service failed or is not configured. """

    kind = "generation"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidJSONError(GenerationError):
    """ The generation service answered with text that is not valid JSON. """

    kind = "invalid_json"

    def __init__(self, raw: str, message: str = "AI returned invalid JSON",
                 status_code: Optional[int] = None):
        self.raw = raw
        super().__init__(message, status_code=status_code)


class StorageError(AgentFlowError):
    kind = "storage"


class WorkflowNotFoundError(AgentFlowError):
    kind = "not_found"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} not found")
