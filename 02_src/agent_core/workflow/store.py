"""Workflow definition lookup."""

import json
from pathlib import Path
from typing import Iterable, Protocol

from ..logging_config import get_logger
from ..models import StepCondition, WorkflowDefinition, WorkflowStep

logger = get_logger(__name__)


class IWorkflowStore(Protocol):
    """Resolves workflow definitions by id."""

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        """Return the definition or None."""
        ...

    def list_definitions(self) -> list[WorkflowDefinition]:
        """Return every stored definition."""
        ...

    def save(self, definition: WorkflowDefinition) -> None:
        """Insert or replace a definition."""
        ...


class InMemoryWorkflowStore:
    """Dictionary-backed workflow store."""

    def __init__(self, definitions: Iterable[WorkflowDefinition] = ()):
        self._definitions: dict[str, WorkflowDefinition] = {}
        for definition in definitions:
            self.save(definition)

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        return self._definitions.get(workflow_id)

    def list_definitions(self) -> list[WorkflowDefinition]:
        return list(self._definitions.values())

    def save(self, definition: WorkflowDefinition) -> None:
        self._definitions[definition.id] = definition


def load_workflows(path: str | Path) -> list[WorkflowDefinition]:
    """Read definitions from a JSON file holding a list (or {"workflows": [...]})."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    items = raw["workflows"] if isinstance(raw, dict) else raw
    definitions = [WorkflowDefinition.from_dict(item) for item in items]
    logger.info("Loaded %s workflow definitions from %s", len(definitions), path)
    return definitions


HALAL_ANALYSIS = WorkflowDefinition(
    id="halal-analysis-complete",
    name="Complete Halal Analysis",
    description="Extract ingredients from label text, classify them and build a report",
    steps=(
        WorkflowStep(
            id="extract-ingredients",
            name="Extract Ingredients from Documents",
            capability="extract-ingredients",
        ),
        WorkflowStep(
            id="analyze-ingredients",
            name="Analyze Ingredients for Halal Compliance",
            capability="analyze-ingredients",
        ),
        WorkflowStep(
            id="generate-report",
            name="Generate Analysis Report",
            capability="generate-analysis-report",
            params={"report_format": "comprehensive"},
        ),
    ),
)

CERTIFICATE_GENERATION = WorkflowDefinition(
    id="certificate-generation-complete",
    name="Complete Certificate Generation",
    description="Analyze a product strictly and issue a certificate when it is HALAL",
    steps=(
        WorkflowStep(
            id="extract-ingredients",
            name="Extract Ingredients from Documents",
            capability="extract-ingredients",
        ),
        WorkflowStep(
            id="analyze-ingredients",
            name="Perform Ingredient Analysis",
            capability="analyze-ingredients",
            params={"strictness": "strict"},
        ),
        # Non-HALAL products skip certification and return the analysis
        WorkflowStep(
            id="generate-certificate",
            name="Generate Certificate",
            capability="generate-halal-certificate",
            conditions=(StepCondition("overall_status", "eq", "HALAL"),),
        ),
    ),
)

DEFAULT_WORKFLOWS = (HALAL_ANALYSIS, CERTIFICATE_GENERATION)
