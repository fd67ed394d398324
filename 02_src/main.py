"""Main entry point for the Agent Core API."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from agent_core.api import create_fastapi_app
from agent_core.api.routes import control
from agent_core.config import Settings
from agent_core.logging_config import setup_logging
from sim import Sim


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    settings = Settings.from_env()
    api_url = f"http://{settings.api_host}:{settings.api_port}"

    # SIM talks to this process over HTTP
    control.set_sim_instance(Sim(api_url=api_url))

    app = create_fastapi_app()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
        log_config=None,
    )


if __name__ == "__main__":
    main()
