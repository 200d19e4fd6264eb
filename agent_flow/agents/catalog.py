""" Static catalog of agent schemas, loaded once from ``gtm_agents.yaml``. """

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ..workflow.models import AgentSchema

_CATALOG_FILE = Path(__file__).with_name("gtm_agents.yaml")


@lru_cache(maxsize=1)
def _load_catalog() -> Dict[str, object]:
    with open(_CATALOG_FILE, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    agents = [AgentSchema.model_validate(raw) for raw in data.get("agents", [])]
    return {
        "agents": {agent.id: agent for agent in agents},
        "global_config": AgentSchema.model_validate(data["global_config"]),
    }


def list_agent_schemas() -> List[AgentSchema]:
    return list(_load_catalog()["agents"].values())


def get_agent_schema(agent_id: str) -> Optional[AgentSchema]:
    return _load_catalog()["agents"].get(agent_id)


def global_config_schema() -> AgentSchema:
    return _load_catalog()["global_config"]
