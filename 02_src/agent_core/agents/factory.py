"""AgentFactory: the only place agent instances are constructed."""

from typing import Any, Callable, Protocol

from ..errors import UnknownAgentTypeError
from ..llm import ILLMProvider
from ..logging_config import get_logger
from .analysis_agent import IngredientAnalysisAgent
from .certificate_agent import CertificateAgent
from .echo_agent import EchoAgent
from .extraction_agent import DocumentExtractionAgent
from .protocol import IAgent
from .report_agent import ReportAgent

logger = get_logger(__name__)

AgentConstructor = Callable[[dict[str, Any]], IAgent]


class IAgentFactory(Protocol):
    """Builds agents by type identifier."""

    def create_agent(self, agent_type: str, config: dict[str, Any] | None = None) -> IAgent:
        """Return a new, uninitialized agent."""
        ...

    def get_available_agent_types(self) -> list[str]:
        """List constructible type identifiers."""
        ...


class AgentFactory:
    """Type-to-constructor table, preloaded with the built-in agents.

    ``config`` may carry ``agent_id`` and ``version``; remaining keys are
    ignored by the built-ins.
    """

    def __init__(self, llm_provider: ILLMProvider | None = None):
        self._llm = llm_provider
        self._constructors: dict[str, AgentConstructor] = {}

        self.register_type("echo", lambda cfg: EchoAgent(**_identity(cfg)))
        self.register_type(
            "document-extraction",
            lambda cfg: DocumentExtractionAgent(**_identity(cfg)),
        )
        self.register_type(
            "ingredient-analysis",
            lambda cfg: IngredientAnalysisAgent(llm_provider=self._llm, **_identity(cfg)),
        )
        self.register_type("report", lambda cfg: ReportAgent(**_identity(cfg)))
        self.register_type("certificate", lambda cfg: CertificateAgent(**_identity(cfg)))

    def register_type(self, agent_type: str, constructor: AgentConstructor) -> None:
        """Add or replace a constructor."""
        self._constructors[agent_type] = constructor

    def create_agent(self, agent_type: str, config: dict[str, Any] | None = None) -> IAgent:
        constructor = self._constructors.get(agent_type)
        if constructor is None:
            raise UnknownAgentTypeError(agent_type)
        agent = constructor(dict(config or {}))
        logger.debug("Created %s agent %s", agent_type, agent.agent_id)
        return agent

    def get_available_agent_types(self) -> list[str]:
        return sorted(self._constructors)


def _identity(config: dict[str, Any]) -> dict[str, Any]:
    return {key: config[key] for key in ("agent_id", "version") if config.get(key)}
