""" Data models for workflows, nodes, conditions and agent schemas """

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import WorkflowValidationError

FormData = Dict[str, Any]
NodeStatus = Literal["pending", "configured", "running", "completed", "failed"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _CamelModel(BaseModel):
    # JSON uses camelCase aliases; Python code uses the field names.
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class ConditionAction(_CamelModel):
    type: str  # "showFields" | "hideFields"
    fields: List[str] = Field(default_factory=list)


class Condition(_CamelModel):
    """ Single-field visibility predicate attached to a node. """

    field: str
    operator: str  # "equals" | "notEquals" | "exists" | "notExists"
    value: Any = None
    action: ConditionAction


class WorkflowNode(_CamelModel):
    id: str
    agent_id: str = Field(alias="agentId")
    agent_name: str = Field(default="", alias="agentName")
    status: NodeStatus = "pending"
    form_data: Optional[FormData] = Field(default=None, alias="formData")
    last_modified: Optional[str] = Field(default=None, alias="lastModified")
    conditions: Optional[List[Condition]] = None
    requires_approval: Optional[bool] = Field(default=None, alias="requiresApproval")


class Workflow(_CamelModel):
    """
    Ordered sequence of nodes plus an optional global configuration.
    Node order is execution order.
    """

    id: str
    name: str
    description: str = ""
    global_config: Optional[FormData] = Field(default=None, alias="globalConfig")
    nodes: List[WorkflowNode] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class AgentConfig(_CamelModel):
    allow_schema_edit: bool = Field(default=False, alias="allowSchemaEdit")
    allow_data_edit: bool = Field(default=True, alias="allowDataEdit")


class AgentSchema(_CamelModel):
    """ Static description of an agent type and its JSON-Schema input. """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    description: str = ""
    json_schema: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    ui_schema: Optional[Dict[str, Any]] = Field(default=None, alias="uiSchema")
    config: Optional[AgentConfig] = None

    def properties(self) -> Dict[str, Any]:
        props = self.json_schema.get("properties")
        return props if isinstance(props, dict) else {}

    def required(self) -> List[str]:
        req = self.json_schema.get("required")
        return list(req) if isinstance(req, list) else []


# -------------------------
# STATE HELPERS
# -------------------------
# Each helper returns a new Workflow and leaves its argument untouched.

def _replace_node(workflow: Workflow, node_id: str, **changes: Any) -> Workflow:
    nodes = [
        node.model_copy(update=changes) if node.id == node_id else node
        for node in workflow.nodes
    ]
    return workflow.model_copy(update={"nodes": nodes})


def update_node_form_data(workflow: Workflow, node_id: str, form_data: FormData) -> Workflow:
    """ Set a node's form data; the node becomes ``configured``. """
    return _replace_node(
        workflow, node_id,
        form_data=dict(form_data),
        status="configured",
        last_modified=utc_now_iso(),
    )


def update_node_status(workflow: Workflow, node_id: str, status: NodeStatus) -> Workflow:
    return _replace_node(workflow, node_id, status=status, last_modified=utc_now_iso())


def update_global_config(workflow: Workflow, config: Optional[FormData]) -> Workflow:
    return workflow.model_copy(update={"global_config": dict(config) if config else config})


# -------------------------
# VALIDATION
# -------------------------

def validate_workflow_data(raw: Any, require_nodes: bool = True) -> List[str]:
    """
    Structural checks on a raw (decoded JSON/YAML) workflow mapping.
    Returns a list of human-readable messages; empty means valid.
    """
    if not isinstance(raw, dict):
        return ["Workflow must be a JSON object"]

    errors: List[str] = []
    if not raw.get("id"):
        errors.append("Workflow must have an ID")
    if not raw.get("name"):
        errors.append("Workflow must have a name")

    nodes = raw.get("nodes")
    if not isinstance(nodes, list):
        errors.append("Workflow must have a nodes list")
        return errors
    if require_nodes and not nodes:
        errors.append("Workflow must have at least one node")

    seen = set()
    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            errors.append(f"Node at index {index} must be an object")
            continue
        node_id = node.get("id")
        if not node_id:
            errors.append(f"Node at index {index} is missing an ID")
        elif node_id in seen:
            errors.append(f"Duplicate node ID: {node_id}")
        else:
            seen.add(node_id)
        if not (node.get("agentId") or node.get("agent_id")):
            errors.append(f"Node {node_id or index} is missing agentId")
    return errors


def parse_workflow(raw: Any, require_nodes: bool = True) -> Workflow:
    """ Validate a raw mapping and build a Workflow, or raise WorkflowValidationError. """
    errors = validate_workflow_data(raw, require_nodes=require_nodes)
    if errors:
        raise WorkflowValidationError(errors)
    try:
        return Workflow.model_validate(raw)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(p) for p in err['loc']) or 'workflow'}: {err['msg']}"
            for err in e.errors()
        ]
        raise WorkflowValidationError(messages) from e
