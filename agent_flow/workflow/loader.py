""" Load and validate Workflow definitions from YAML (or JSON) text. """

from pathlib import Path
from typing import List

import yaml

from ..errors import WorkflowValidationError
from .models import Workflow, parse_workflow

TEMPLATES_DIR = Path(__file__).with_name("templates")


def load_workflow(text: str) -> Workflow:
    """
    Load a Workflow from a YAML string.  JSON is valid YAML, so exported
    workflow files load too.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowValidationError([f"Invalid workflow YAML: {e}"]) from e
    return parse_workflow(data)


def list_templates() -> List[str]:
    return sorted(p.stem for p in TEMPLATES_DIR.glob("*.yaml"))


def load_template(name: str) -> Workflow:
    path = TEMPLATES_DIR / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Workflow template not found: {name}")
    with open(path, "r", encoding="utf-8") as f:
        return load_workflow(f.read())
