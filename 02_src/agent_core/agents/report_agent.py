"""Report agent: turns an ingredient analysis into a summary report."""

import time
import uuid
from datetime import datetime, timezone

from ..logging_config import get_logger
from ..models import AgentContext, AgentMetrics, Capability, Message, Result

logger = get_logger(__name__)

GENERATE_REPORT = Capability(
    name="generate-analysis-report",
    description="Summarize a halal analysis for a client or certifier",
    input_types={"generate-analysis-report", "halal-analysis"},
    output_types={"analysis-report"},
    dependencies=("analyze-ingredients",),
)

REPORT_FORMATS = ("summary", "comprehensive")


class ReportAgent:
    """Builds summary or comprehensive reports from analysis results."""

    def __init__(self, agent_id: str = "report-agent", version: str = "1.0.0"):
        self._agent_id = agent_id
        self._version = version
        self._metrics = AgentMetrics()
        self._active = False

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return "Report Agent"

    @property
    def version(self) -> str:
        return self._version

    @property
    def capabilities(self) -> list[Capability]:
        return [GENERATE_REPORT]

    async def initialize(self, context: AgentContext | None) -> None:
        self._active = True

    def can_handle(self, message: Message) -> bool:
        return GENERATE_REPORT.accepts(message.type) and "overall_status" in message.payload

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        started = time.perf_counter()
        payload = message.payload

        if "overall_status" not in payload:
            result = Result.fail(self._agent_id, "INVALID_INPUT", "payload is not an analysis result")
        else:
            report_format = payload.get("report_format", "summary")
            if report_format not in REPORT_FORMATS:
                report_format = "summary"
            result = Result.ok(self._agent_id, self._build(payload, report_format, context))

        elapsed = (time.perf_counter() - started) * 1000
        self._metrics.record(result.success, elapsed, datetime.now(timezone.utc))
        return result.with_timing(self._agent_id, elapsed)

    def _build(self, analysis, report_format: str, context: AgentContext | None) -> dict:
        ingredients = list(analysis.get("ingredients", []))
        counts = {"HALAL": 0, "HARAM": 0, "MASHBOOH": 0}
        for item in ingredients:
            status = item.get("status")
            if status in counts:
                counts[status] += 1

        report = {
            "report_id": str(uuid.uuid4()),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "format": report_format,
            "product_name": analysis.get("product_name", "Unknown Product"),
            "overall_status": analysis["overall_status"],
            "confidence_score": analysis.get("confidence_score"),
            "ingredient_counts": counts,
            "recommendations": list(analysis.get("recommendations", [])),
            "prepared_for": (
                {
                    "user_id": context.user_id,
                    "organization_type": context.organization_type.value,
                }
                if context
                else None
            ),
        }
        if report_format == "comprehensive":
            report["ingredients"] = ingredients
        else:
            report["flagged"] = [
                item.get("name") for item in ingredients if item.get("status") != "HALAL"
            ]
        logger.debug("Built %s report %s", report_format, report["report_id"])
        return report

    async def health_check(self) -> bool:
        return self._active

    async def shutdown(self) -> None:
        self._active = False

    def get_metrics(self) -> AgentMetrics:
        return self._metrics
