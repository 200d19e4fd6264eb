from logging import getLogger
from typing import Dict, Iterable, List, Optional

from ..errors import NoExecutorRegisteredError
from .base import AgentExecutor

logger = getLogger(__name__)


class ExecutorRegistry:
    """ Agent id -> executor.  One registry per engine; no module-level state. """

    def __init__(self, executors: Optional[Iterable[AgentExecutor]] = None):
        self._executors: Dict[str, AgentExecutor] = {}
        for executor in executors or []:
            self.register(executor)

    def register(self, executor: AgentExecutor) -> AgentExecutor:
        if not executor.agent_id:
            raise ValueError(f"Executor {executor!r} has no agent_id")
        self._executors[executor.agent_id] = executor
        return executor

    def get(self, agent_id: str) -> AgentExecutor:
        if agent_id not in self._executors:
            raise NoExecutorRegisteredError(agent_id)
        return self._executors[agent_id]

    def has(self, agent_id: str) -> bool:
        return agent_id in self._executors

    def ids(self) -> List[str]:
        return list(self._executors)

    def __len__(self) -> int:
        return len(self._executors)

    def __contains__(self, agent_id: str) -> bool:
        return self.has(agent_id)


def build_registry(llm=None, use_mock: Optional[bool] = None) -> ExecutorRegistry:
    """
    Registry with the generative executors when the LLM client is usable,
    otherwise the mock executors.
    """
    from ..config import get_settings
    from .generative import generative_executors
    from .mock import mock_executors

    if use_mock is None:
        use_mock = get_settings().use_mock
    if use_mock is None:
        use_mock = llm is None or not llm.is_available()

    if use_mock:
        logger.info("Agent execution mode: mock")
        return ExecutorRegistry(mock_executors())

    logger.info("Agent execution mode: generative")
    return ExecutorRegistry(generative_executors(llm))
