"""Certificate agent: issues and verifies halal certificates for analyzed products."""

import hashlib
import itertools
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..logging_config import get_logger
from ..models import AgentContext, AgentMetrics, Capability, Message, OrganizationType, Result

logger = get_logger(__name__)

GENERATE_CERTIFICATE = Capability(
    name="generate-halal-certificate",
    description="Issue a halal certificate for a product analyzed as HALAL",
    input_types={"generate-halal-certificate"},
    output_types={"halal-certificate"},
    dependencies=("analyze-ingredients",),
)

VERIFY_CERTIFICATE = Capability(
    name="certificate-validation",
    description="Check that an issued certificate exists and has not expired",
    input_types={"verify-certificate"},
    output_types={"certificate-status"},
)

ISSUE_PERMISSION = "issue-certificates"


@dataclass
class CertificateRecord:
    id: str
    number: str
    product_name: str
    issued_at: datetime
    valid_until: datetime
    verification_code: str
    status: str = "active"

    def to_dict(self) -> dict:
        return {
            "certificate_id": self.id,
            "certificate_number": self.number,
            "product_name": self.product_name,
            "issued_at": self.issued_at.isoformat(),
            "valid_until": self.valid_until.isoformat(),
            "verification_code": self.verification_code,
            "status": self.status,
        }


class CertificateAgent:
    """Issues certificates only for HALAL analyses and keeps a registry of them.

    Callers with a context must belong to a certification body or hold the
    ``issue-certificates`` permission.
    """

    def __init__(
        self,
        agent_id: str = "certificate-agent",
        version: str = "1.0.0",
        issuing_authority: str = "HalalCheck Certification",
        validity_days: int = 365,
    ):
        self._agent_id = agent_id
        self._version = version
        self._issuing_authority = issuing_authority
        self._validity = timedelta(days=validity_days)
        self._metrics = AgentMetrics()
        self._certificates: dict[str, CertificateRecord] = {}
        self._serial = itertools.count(1)
        self._active = False

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return "Certificate Generation Agent"

    @property
    def version(self) -> str:
        return self._version

    @property
    def capabilities(self) -> list[Capability]:
        return [GENERATE_CERTIFICATE, VERIFY_CERTIFICATE]

    async def initialize(self, context: AgentContext | None) -> None:
        self._active = True

    def can_handle(self, message: Message) -> bool:
        if VERIFY_CERTIFICATE.accepts(message.type):
            return "certificate_id" in message.payload
        return GENERATE_CERTIFICATE.accepts(message.type) and "overall_status" in message.payload

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        started = time.perf_counter()
        if VERIFY_CERTIFICATE.accepts(message.type):
            result = self._verify(message.payload.get("certificate_id"))
        else:
            result = self._issue(message.payload, context)

        elapsed = (time.perf_counter() - started) * 1000
        self._metrics.record(result.success, elapsed, datetime.now(timezone.utc))
        return result.with_timing(self._agent_id, elapsed)

    def _issue(self, analysis, context: AgentContext | None) -> Result:
        if not _may_issue(context):
            return Result.fail(
                self._agent_id,
                "FORBIDDEN",
                f"certificates require the '{ISSUE_PERMISSION}' permission",
            )
        status = analysis.get("overall_status")
        if status is None:
            return Result.fail(self._agent_id, "INVALID_INPUT", "payload is not an analysis result")
        if status != "HALAL":
            return Result.fail(
                self._agent_id,
                "NOT_ELIGIBLE",
                f"product analyzed as {status}, only HALAL products are certified",
                {"overall_status": status},
            )

        issued_at = datetime.now(timezone.utc)
        record = CertificateRecord(
            id=str(uuid.uuid4()),
            number=f"HAL-{issued_at.year}-{next(self._serial):06d}",
            product_name=analysis.get("product_name", "Unknown Product"),
            issued_at=issued_at,
            valid_until=issued_at + self._validity,
            verification_code="",
        )
        record.verification_code = hashlib.sha256(
            f"{record.id}:{record.number}:{record.product_name}".encode("utf-8")
        ).hexdigest()[:16]
        self._certificates[record.id] = record
        logger.info(
            "Issued certificate %s for %s",
            record.number,
            record.product_name,
            extra={"agent_id": self._agent_id},
        )

        data = record.to_dict()
        data["issuing_authority"] = self._issuing_authority
        data["confidence_score"] = analysis.get("confidence_score")
        data["ingredient_count"] = len(analysis.get("ingredients", []))
        return Result.ok(self._agent_id, data)

    def _verify(self, certificate_id) -> Result:
        record = self._certificates.get(certificate_id)
        if record is None:
            return Result.ok(
                self._agent_id,
                {"certificate_id": certificate_id, "valid": False, "errors": ["Certificate not found"]},
            )

        errors = []
        if record.valid_until < datetime.now(timezone.utc):
            errors.append("Certificate has expired")
        return Result.ok(
            self._agent_id,
            {**record.to_dict(), "valid": not errors, "errors": errors},
        )

    async def health_check(self) -> bool:
        return self._active

    async def shutdown(self) -> None:
        self._active = False

    def get_metrics(self) -> AgentMetrics:
        return self._metrics


def _may_issue(context: AgentContext | None) -> bool:
    if context is None:
        return True
    return (
        context.organization_type == OrganizationType.CERTIFICATION_BODY
        or context.has_permission(ISSUE_PERMISSION)
    )
