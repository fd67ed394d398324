"""Ingredient analysis agent: halal classification of ingredient lists."""

import asyncio
import re
import time
from datetime import datetime, timezone

from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    AgentContext,
    AgentMetrics,
    Capability,
    Message,
    OrganizationType,
    Result,
)
from .knowledge_base import Classification, HalalStatus, KnowledgeBase

logger = get_logger(__name__)

ANALYZE_INGREDIENTS = Capability(
    name="analyze-ingredients",
    description="Classify ingredients as halal, haram or doubtful",
    input_types={"analyze-ingredients", "ingredient-list"},
    output_types={"halal-analysis"},
    dependencies=("extract-ingredients",),
)

STRICTNESS_LEVELS = ("strict", "moderate", "lenient")

LLM_SYSTEM_PROMPT = (
    "You classify food ingredients under Islamic dietary law. "
    "Answer with exactly one of HALAL, HARAM or MASHBOOH on the first line, "
    "followed by one sentence of reasoning."
)

_STATUS_RE = re.compile(r"\b(HALAL|HARAM|MASHBOOH)\b")


def strictness_for(context: AgentContext | None, requested: str | None = None) -> str:
    """Explicit request, then session preference, then organization default."""
    for candidate in (requested, context.preferences.get("strictness") if context else None):
        if candidate in STRICTNESS_LEVELS:
            return candidate
    if context and context.organization_type == OrganizationType.CERTIFICATION_BODY:
        return "strict"
    return "moderate"


def overall_status(statuses: list[HalalStatus]) -> HalalStatus:
    if HalalStatus.HARAM in statuses:
        return HalalStatus.HARAM
    if HalalStatus.MASHBOOH in statuses:
        return HalalStatus.MASHBOOH
    return HalalStatus.HALAL


class IngredientAnalysisAgent:
    """Classifies ingredients against the built-in knowledge base.

    Ingredients the knowledge base does not know are sent to the LLM when
    one is configured; otherwise they are reported as doubtful.
    """

    def __init__(
        self,
        agent_id: str = "ingredient-analysis-agent",
        llm_provider: ILLMProvider | None = None,
        knowledge_base: KnowledgeBase | None = None,
        version: str = "1.0.0",
    ):
        self._agent_id = agent_id
        self._llm = llm_provider
        self._kb = knowledge_base
        self._version = version
        self._metrics = AgentMetrics()

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return "Ingredient Analysis Agent"

    @property
    def version(self) -> str:
        return self._version

    @property
    def capabilities(self) -> list[Capability]:
        return [ANALYZE_INGREDIENTS]

    async def initialize(self, context: AgentContext | None) -> None:
        if self._kb is None:
            self._kb = KnowledgeBase()
        logger.info(
            "Initialized %s v%s with %s known names (llm=%s)",
            self.name,
            self._version,
            len(self._kb),
            self._llm is not None,
        )

    def can_handle(self, message: Message) -> bool:
        return ANALYZE_INGREDIENTS.accepts(message.type) and isinstance(
            message.payload.get("ingredients"), (list, tuple)
        )

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        started = time.perf_counter()
        ingredients = message.payload.get("ingredients")
        if not isinstance(ingredients, (list, tuple)) or not ingredients:
            return self._finish(
                started,
                Result.fail(self._agent_id, "INVALID_INPUT", "payload needs a non-empty 'ingredients' list"),
            )

        strictness = strictness_for(context, message.payload.get("strictness"))
        analyzed = await asyncio.gather(
            *[self._classify(str(name), strictness) for name in ingredients]
        )

        status = overall_status([HalalStatus(a["status"]) for a in analyzed])
        confidence = sum(a["confidence"] for a in analyzed) / len(analyzed)
        data = {
            "product_name": message.payload.get("product_name", "Unknown Product"),
            "overall_status": status.value,
            "confidence_score": round(confidence, 1),
            "strictness": strictness,
            "ingredients": analyzed,
            "recommendations": self._recommendations(analyzed),
        }
        logger.info(
            "Analyzed %s ingredients: %s (%.1f%%)",
            len(analyzed),
            status.value,
            confidence,
            extra={"agent_id": self._agent_id, "message_id": message.id},
        )
        return self._finish(started, Result.ok(self._agent_id, data))

    async def _classify(self, ingredient: str, strictness: str) -> dict:
        found = self._kb.lookup(ingredient) if self._kb else None
        if found is None:
            found = await self._classify_unknown(ingredient)

        entry = found.to_dict()
        entry["name"] = ingredient
        entry["matched"] = found.name

        if found.status == HalalStatus.MASHBOOH:
            if strictness == "strict":
                entry["requires_verification"] = True
            elif strictness == "lenient" and found.confidence >= 70:
                entry["status"] = HalalStatus.HALAL.value
                entry["reasoning"] += " (accepted under lenient policy)"
        return entry

    async def _classify_unknown(self, ingredient: str) -> Classification:
        if self._llm is not None:
            try:
                answer = await self._llm.complete(
                    messages=[{"role": "user", "content": f"Ingredient: {ingredient}"}],
                    system=LLM_SYSTEM_PROMPT,
                    max_tokens=200,
                )
            except Exception as e:
                logger.warning("LLM classification failed for %s: %s", ingredient, e)
            else:
                match = _STATUS_RE.search(answer.upper())
                if match:
                    reasoning = answer.strip().split("\n", 1)[-1].strip() or "LLM classification"
                    return Classification(
                        name=ingredient,
                        status=HalalStatus(match.group(1)),
                        confidence=60,
                        reasoning=reasoning,
                        references=("LLM assessment",),
                        requires_verification=True,
                    )

        return Classification(
            name=ingredient,
            status=HalalStatus.MASHBOOH,
            confidence=30,
            reasoning="Not found in knowledge base",
            requires_verification=True,
        )

    @staticmethod
    def _recommendations(analyzed: list[dict]) -> list[str]:
        recommendations = []

        haram = [a["name"] for a in analyzed if a["status"] == HalalStatus.HARAM.value]
        if haram:
            recommendations.append(
                f"Contains {len(haram)} haram ingredient(s): {', '.join(haram)}. "
                "Not suitable for Muslim consumers."
            )

        doubtful = [a for a in analyzed if a["status"] == HalalStatus.MASHBOOH.value]
        if doubtful:
            recommendations.append(
                f"Contains {len(doubtful)} doubtful ingredient(s): "
                f"{', '.join(a['name'] for a in doubtful)}. Verify with the manufacturer."
            )
            for a in doubtful:
                if a["requires_verification"]:
                    recommendations.append(
                        f"For {a['name']}: request source certification from the supplier."
                    )

        for a in analyzed:
            if a["alternatives"] and a["status"] != HalalStatus.HALAL.value:
                recommendations.append(
                    f"Consider alternatives to {a['name']}: {', '.join(a['alternatives'])}"
                )
        return recommendations

    def _finish(self, started: float, result: Result) -> Result:
        elapsed = (time.perf_counter() - started) * 1000
        self._metrics.record(result.success, elapsed, datetime.now(timezone.utc))
        return result.with_timing(self._agent_id, elapsed)

    async def health_check(self) -> bool:
        return self._kb is not None and len(self._kb) > 0

    async def shutdown(self) -> None:
        logger.info("Shutting down %s", self.name)
        self._kb = None

    def get_metrics(self) -> AgentMetrics:
        return self._metrics
