from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

FormData = Dict[str, Any]

# Input key carrying every earlier node's output, keyed by node id.
PREVIOUS_OUTPUTS_KEY = "_previousOutputs"


class AgentExecutor(ABC):
    """ Abstract base class for all agent executors. """

    agent_id: str = ""
    name: str = ""

    @abstractmethod
    def execute(self, input: FormData) -> FormData:
        """
        Turn a node's input into its output.  Must be implemented by subclasses.
        All context, including earlier outputs, arrives through ``input``.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agent_id={self.agent_id!r})"


def previous_outputs(input: FormData) -> Dict[str, FormData]:
    outputs = input.get(PREVIOUS_OUTPUTS_KEY)
    return outputs if isinstance(outputs, dict) else {}


def latest_output_with(input: FormData, key: str) -> Optional[FormData]:
    """
    Most recent earlier output that contains ``key``.
    Outputs are keyed by node id, so agents look them up by content.
    """
    for output in reversed(list(previous_outputs(input).values())):
        if isinstance(output, dict) and key in output:
            return output
    return None


def own_fields(input: FormData) -> FormData:
    """ The node's own form data, without the earlier outputs. """
    return {k: v for k, v in input.items() if k != PREVIOUS_OUTPUTS_KEY}
