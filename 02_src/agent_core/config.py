"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "agent_core.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_AGENT_TYPES = (
    "echo",
    "document-extraction",
    "ingredient-analysis",
    "report",
    "certificate",
)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_project_path(value: PathLike) -> Path:
    """Resolve a path relative to the project root."""
    candidate = Path(value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime settings. Timeouts and intervals are in seconds."""

    db_path: PathLike = DEFAULT_DB_PATH
    dispatch_timeout: float = 30.0
    health_check_interval: float = 60.0
    health_check_timeout: float = 5.0
    queue_workers: int = 4
    strict_priority: bool = False
    agent_types: tuple[str, ...] = field(default=DEFAULT_AGENT_TYPES)
    workflows_path: Path | None = None
    api_host: str = "localhost"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        workflows_path = os.getenv("WORKFLOWS_PATH")
        return cls(
            db_path=resolve_db_path(os.getenv("DATABASE_URL")),
            dispatch_timeout=float(os.getenv("DISPATCH_TIMEOUT", "30")),
            health_check_interval=float(os.getenv("HEALTH_CHECK_INTERVAL", "60")),
            health_check_timeout=float(os.getenv("HEALTH_CHECK_TIMEOUT", "5")),
            queue_workers=int(os.getenv("QUEUE_WORKERS", "4")),
            strict_priority=_env_bool("STRICT_PRIORITY", False),
            agent_types=_env_list("AGENT_TYPES", DEFAULT_AGENT_TYPES),
            workflows_path=(
                resolve_project_path(workflows_path) if workflows_path else None
            ),
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=int(os.getenv("API_PORT", "8000")),
        )
