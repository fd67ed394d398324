"""Agents module."""

from .analysis_agent import IngredientAnalysisAgent
from .certificate_agent import CertificateAgent
from .echo_agent import EchoAgent
from .extraction_agent import DocumentExtractionAgent
from .factory import AgentFactory, IAgentFactory
from .knowledge_base import HalalStatus, KnowledgeBase
from .protocol import IAgent
from .report_agent import ReportAgent

__all__ = [
    "AgentFactory",
    "CertificateAgent",
    "DocumentExtractionAgent",
    "EchoAgent",
    "HalalStatus",
    "IAgent",
    "IAgentFactory",
    "IngredientAnalysisAgent",
    "KnowledgeBase",
    "ReportAgent",
]
