"""Document extraction agent: pulls an ingredient list out of label text."""

import re
import time
from datetime import datetime, timezone

from ..logging_config import get_logger
from ..models import AgentContext, AgentMetrics, Capability, Message, Result

logger = get_logger(__name__)

EXTRACT_INGREDIENTS = Capability(
    name="extract-ingredients",
    description="Extract the ingredient list from product label text",
    input_types={"document", "extract-ingredients"},
    output_types={"ingredient-list"},
)

_PRODUCT = re.compile(
    r"^\s*product(?: name)?\s*:\s*(?P<name>.+?)\s*$", re.IGNORECASE | re.MULTILINE
)
_SECTION = re.compile(r"ingredients?\s*[:\-]\s*(?P<body>.+)", re.IGNORECASE | re.DOTALL)
# Stop at allergen/storage blurbs that often follow the list
_SECTION_END = re.compile(
    r"\.\s*(?:\n|$)|\n\s*\n|\b(?:contains|allergen|allergy advice|may contain|store)\b",
    re.IGNORECASE,
)


def split_ingredients(text: str) -> list[str]:
    """Split on commas and semicolons that are not inside brackets."""
    items, depth, current = [], 0, []
    for ch in text:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        if ch in ",;" and depth == 0:
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
    items.append("".join(current))
    return [" ".join(item.split()).strip(" .") for item in items if item.strip(" .\n")]


def extract_ingredients(text: str) -> list[str]:
    """Find the ingredient section of a label and split it."""
    match = _SECTION.search(text)
    body = match.group("body") if match else text
    end = _SECTION_END.search(body)
    if end:
        body = body[: end.start()]
    return split_ingredients(body)


class DocumentExtractionAgent:
    """Turns raw label text into a structured ingredient list."""

    def __init__(self, agent_id: str = "document-extraction-agent", version: str = "1.0.0"):
        self._agent_id = agent_id
        self._version = version
        self._metrics = AgentMetrics()
        self._ready = False

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return "Document Extraction Agent"

    @property
    def version(self) -> str:
        return self._version

    @property
    def capabilities(self) -> list[Capability]:
        return [EXTRACT_INGREDIENTS]

    async def initialize(self, context: AgentContext | None) -> None:
        self._ready = True

    def can_handle(self, message: Message) -> bool:
        return EXTRACT_INGREDIENTS.accepts(message.type) and (
            "text" in message.payload or "ingredients" in message.payload
        )

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        started = time.perf_counter()
        payload = message.payload

        product_name = payload.get("product_name")
        if "text" in payload:
            text = str(payload["text"])
            ingredients = extract_ingredients(text)
            if not product_name:
                found = _PRODUCT.search(text)
                product_name = found.group("name") if found else None
        elif isinstance(payload.get("ingredients"), (list, tuple)):
            ingredients = [str(i).strip() for i in payload["ingredients"] if str(i).strip()]
        else:
            return self._finish(
                started,
                Result.fail(
                    self._agent_id,
                    "INVALID_INPUT",
                    "payload needs 'text' or an 'ingredients' list",
                ),
            )

        if not ingredients:
            return self._finish(
                started,
                Result.fail(self._agent_id, "NO_INGREDIENTS", "No ingredients found in document"),
            )

        logger.info(
            "Extracted %s ingredients for message %s",
            len(ingredients),
            message.id,
            extra={"agent_id": self._agent_id, "message_id": message.id},
        )
        data = {
            "product_name": product_name or "Unknown Product",
            "ingredients": ingredients,
        }
        return self._finish(started, Result.ok(self._agent_id, data))

    def _finish(self, started: float, result: Result) -> Result:
        elapsed = (time.perf_counter() - started) * 1000
        self._metrics.record(result.success, elapsed, datetime.now(timezone.utc))
        return result.with_timing(self._agent_id, elapsed)

    async def health_check(self) -> bool:
        return self._ready

    async def shutdown(self) -> None:
        self._ready = False

    def get_metrics(self) -> AgentMetrics:
        return self._metrics
