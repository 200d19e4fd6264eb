"""Tests for the editing and execution session."""

import pytest

from agent_flow.agents.mock import mock_executors
from agent_flow.agents.registry import ExecutorRegistry
from agent_flow.errors import WorkflowValidationError
from agent_flow.session import WorkflowSession
from agent_flow.workflow.executor import ExecutionEngine
from agent_flow.workflow.loader import load_template


class RecordingSaver:
    def __init__(self):
        self.notified = []

    def notify(self, workflow):
        self.notified.append(workflow)


def make_session(saver=None, **kwargs):
    engine = ExecutionEngine(ExecutorRegistry(mock_executors(delay=0)))
    return WorkflowSession(load_template("gtm_content_pipeline"), engine, autosaver=saver, **kwargs)


def test_effective_form_data_cascades_global_config():
    session = make_session()
    data = session.effective_form_data("node-2")

    assert data["tone"] == "professional"
    assert data["keywords"] == ["AI", "marketing"]
    assert data["wordCount"] == 1500
    # stored form data is untouched
    assert session.workflow.get_node("node-2").form_data["tone"] == ""


def test_node_without_form_data_gets_no_global_values():
    assert make_session().effective_form_data("node-3") == {}


def test_hidden_fields_follow_effective_data():
    session = make_session()
    assert session.hidden_fields("node-2") == {"includeEmojis"}

    session.update_node_form_data("node-2", {"topic": "AI", "tone": "casual"})
    assert session.hidden_fields("node-2") == set()


def test_visible_schema_filters_hidden_fields():
    session = make_session()
    schema = session.visible_schema("node-2")
    assert "includeEmojis" not in schema.properties()
    assert "topic" in schema.properties()


def test_unknown_agent_has_no_schema():
    session = make_session(schema_lookup=lambda agent_id: None)
    assert session.visible_schema("node-2") is None
    assert session.effective_form_data("node-2")["tone"] == ""


def test_edits_update_snapshot_and_notify_saver():
    saver = RecordingSaver()
    session = make_session(saver)
    original = session.workflow

    session.update_node_form_data("node-3", {"focusKeyword": "AI"})
    node = session.workflow.get_node("node-3")
    assert node.status == "configured"
    assert node.last_modified
    assert original.get_node("node-3").form_data is None

    session.update_global_config({"brandVoice": {"tone": "casual"}})
    assert session.effective_form_data("node-2")["tone"] == "casual"
    assert len(saver.notified) == 2


def test_update_unknown_node():
    with pytest.raises(KeyError):
        make_session().update_node_form_data("node-99", {})


def test_replace_workflow_is_all_or_nothing():
    session = make_session()
    raw = session.workflow.to_dict()
    raw["name"] = "Renamed"
    session.replace_workflow(raw)
    assert session.workflow.name == "Renamed"

    broken = session.workflow.to_dict()
    broken["nodes"][1]["id"] = "node-1"
    with pytest.raises(WorkflowValidationError):
        session.replace_workflow(broken)
    assert session.workflow.name == "Renamed"
    assert session.workflow.nodes[1].id == "node-2"


def test_replace_workflow_keeps_id():
    session = make_session()
    raw = session.workflow.to_dict()
    raw["id"] = "other"
    with pytest.raises(WorkflowValidationError):
        session.replace_workflow(raw)


def test_execute_runs_pipeline_and_tracks_statuses():
    saver = RecordingSaver()
    events = []
    session = make_session(saver, on_progress=events.append)

    result = session.execute()

    assert result.success is True
    assert list(result.outputs) == ["node-1", "node-2", "node-3", "node-4"]
    assert session.result is result
    assert session.error is None
    assert all(s.status == "completed" for s in session.node_statuses.values())
    assert [n.status for n in session.workflow.nodes] == ["completed"] * 4
    assert len(events) == 12
    assert saver.notified
    assert session.is_executing is False


def test_execute_failure_sets_error():
    engine = ExecutionEngine(ExecutorRegistry(mock_executors(delay=0)[:2]))
    session = WorkflowSession(load_template("gtm_content_pipeline"), engine)

    result = session.execute()

    assert result.success is False
    assert session.error == "No executor registered for agent: seo-optimizer"
    assert session.node_statuses["node-3"].status == "failed"
    assert "node-4" not in session.node_statuses
    assert session.workflow.get_node("node-4").status == "pending"

    session.reset_execution()
    assert session.node_statuses == {}
    assert session.result is None
    assert session.error is None
