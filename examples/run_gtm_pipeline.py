"""Example: run the packaged GTM content pipeline and save it with auto-save."""
import json
import logging
import sys

from agent_flow.agents.registry import build_registry
from agent_flow.llm_api import LLMClient
from agent_flow.session import WorkflowSession
from agent_flow.storage.autosave import AutoSaver
from agent_flow.storage.store import WorkflowStorage, export_filename
from agent_flow.workflow.executor import ExecutionEngine
from agent_flow.workflow.loader import load_template


def print_progress(progress):
    line = f"[{progress.status:>9}] {progress.node_id}"
    if progress.error:
        line += f"  error: {progress.error}"
    print(line)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Uses the generation service when AGENT_FLOW_GENERATE_URL is set, mocks otherwise
    llm = LLMClient()
    engine = ExecutionEngine(build_registry(llm))
    storage = WorkflowStorage()
    saver = AutoSaver(storage, delay=0.5)

    session = WorkflowSession(load_template("gtm_content_pipeline"), engine,
                              autosaver=saver, on_progress=print_progress)

    print("Effective blog-writer input:")
    print(json.dumps(session.effective_form_data("node-2"), indent=2))
    print("Hidden fields:", sorted(session.hidden_fields("node-2")))

    result = session.execute()
    saver.close()
    llm.close()

    print(f"\nFinished in {result.total_time_ms} ms, success={result.success}")
    if not result.success:
        print("Error:", session.error)
        sys.exit(1)

    social = result.outputs["node-4"]
    print("Twitter post:\n" + social["posts"]["twitter"])
    print(f"\nExport as {export_filename(session.workflow)}:")
    print(storage.export_workflow(session.workflow.id)[:400] + "...")


if __name__ == "__main__":
    main()
