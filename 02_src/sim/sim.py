"""SIM implementation - scripted product-label scenario for testing."""

import asyncio
import random
from typing import Protocol

import httpx

from agent_core.logging_config import get_logger
from agent_core.tracker import ITracker

logger = get_logger(__name__)

WORKFLOW_ID = "halal-analysis-complete"

# Virtual users submitting labels on behalf of their organization
VIRTUAL_USERS = [
    {"user_id": "user_001", "organization_type": "certification-body"},
    {"user_id": "user_002", "organization_type": "food-manufacturer"},
]

PRODUCT_LABELS = [
    "Product: Chocolate Wafer\nIngredients: sugar, wheat flour, cocoa butter, "
    "soy lecithin (E322), natural flavors, salt",
    "Product: Gummy Bears\nIngredients: glucose syrup, sugar, gelatin, citric acid, "
    "carmine, carnauba wax",
    "Product: Sponge Cake\nIngredients: flour, eggs, sugar, vegetable oil, "
    "emulsifier (E471), vanilla extract",
    "Product: Pepperoni Pizza\nIngredients: wheat flour, tomato, cheese, pork, salt",
]


class ISim(Protocol):
    """Generate test traffic against the HTTP API."""

    async def start(self) -> None:
        """Start the scripted scenario."""
        ...

    async def stop(self) -> None:
        """Stop the scenario."""
        ...


class Sim:
    """Drives echo messages and halal analysis workflows through the API."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        delay_range: tuple[float, float] = (1.0, 3.0),
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._delay_range = delay_range
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def running(self) -> bool:
        return self._running

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    async def start(self) -> None:
        """Start the scripted scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient(base_url=self._api_url, timeout=30.0)
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop the scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        summary = {
            "scenario": "product-labels",
            "user_count": len(VIRTUAL_USERS),
            "label_count": len(PRODUCT_LABELS),
        }
        try:
            if self._tracker:
                await self._tracker.track("sim_started", "sim", summary)

            for user in VIRTUAL_USERS:
                if not self._running:
                    break
                await self.send_echo(user, f"hello from {user['user_id']}")

            for index, label in enumerate(PRODUCT_LABELS):
                if not self._running:
                    break
                user = VIRTUAL_USERS[index % len(VIRTUAL_USERS)]
                await self.run_analysis(user, label)
                await asyncio.sleep(random.uniform(*self._delay_range))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            if self._tracker:
                await self._tracker.track("sim_completed", "sim", summary)

    async def send_echo(self, user: dict, text: str) -> dict | None:
        """Route an echo message through /api/messages."""
        return await self._post(
            "/api/messages",
            {"type": "echo", "payload": {"text": text}, "source": "sim", "context": user},
        )

    async def run_analysis(self, user: dict, label: str) -> dict | None:
        """Run the halal analysis workflow on one label."""
        data = await self._post(
            f"/api/workflows/{WORKFLOW_ID}/execute",
            {"input": {"text": label}, "context": user},
        )
        if data and data.get("success"):
            report = data.get("data") or {}
            logger.info(
                "SIM: %s -> %s (%s)",
                user["user_id"],
                report.get("product_name"),
                report.get("overall_status"),
            )
        return data

    async def _post(self, path: str, body: dict) -> dict | None:
        if not self._client:
            return None

        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.error("SIM: Request to %s failed: %s", path, e)
            return None

        if response.status_code != 200:
            logger.error("SIM: %s returned %s: %s", path, response.status_code, response.text)
            return None
        return response.json()
