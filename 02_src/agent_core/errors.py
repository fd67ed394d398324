"""Error taxonomy of the agent core."""

from .models import ResultError


class OrchestrationError(Exception):
    """Base class for errors raised by the agent core."""


class DuplicateIdError(OrchestrationError):
    """An agent with the same id is already registered."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent already registered: {agent_id}")
        self.agent_id = agent_id


class NotFoundError(OrchestrationError):
    """The referenced agent (or other entity) does not exist."""

    def __init__(self, message: str, entity_id: str | None = None):
        super().__init__(message)
        self.entity_id = entity_id


class TargetNotFoundError(NotFoundError):
    """A message target is absent or unhealthy."""

    def __init__(self, target: str, reason: str = "not registered"):
        super().__init__(f"Target agent {target} is {reason}", target)
        self.target = target
        self.reason = reason


class WorkflowNotFoundError(NotFoundError):
    """No workflow definition is stored under the requested id."""

    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow not found: {workflow_id}", workflow_id)
        self.workflow_id = workflow_id


class DispatchTimeoutError(OrchestrationError, TimeoutError):
    """An agent did not settle within its dispatch timeout."""

    def __init__(self, agent_id: str, timeout: float):
        super().__init__(f"Agent {agent_id} timed out after {timeout}s")
        self.agent_id = agent_id
        self.timeout = timeout


class DuplicateMessageError(OrchestrationError):
    """A message with the same id is already being routed."""

    def __init__(self, message_id: str):
        super().__init__(f"Message already in flight: {message_id}")
        self.message_id = message_id


class AgentInitializationError(OrchestrationError):
    """An agent's initialize() raised; the agent was not registered."""

    def __init__(self, agent_id: str, cause: BaseException):
        super().__init__(f"Agent {agent_id} failed to initialize: {cause}")
        self.agent_id = agent_id


class UnknownAgentTypeError(OrchestrationError):
    """The factory has no constructor for the requested agent type."""

    def __init__(self, agent_type: str):
        super().__init__(f"Unknown agent type: {agent_type}")
        self.agent_type = agent_type


class WorkflowValidationError(OrchestrationError):
    """A workflow references capabilities no registered agent declares."""

    def __init__(self, workflow_id: str, missing: list[str]):
        super().__init__(
            f"Workflow {workflow_id} references undeclared capabilities: "
            + ", ".join(missing)
        )
        self.workflow_id = workflow_id
        self.missing = missing


class WorkflowStepError(OrchestrationError):
    """A workflow step failed; remaining steps were not executed."""

    def __init__(
        self,
        workflow_id: str,
        step_index: int,
        step_id: str,
        error: ResultError,
        execution_id: str | None = None,
    ):
        super().__init__(
            f"Workflow {workflow_id} failed at step {step_index} ({step_id}): "
            f"[{error.code}] {error.message}"
        )
        self.workflow_id = workflow_id
        self.step_index = step_index
        self.step_id = step_id
        self.error = error
        self.execution_id = execution_id
