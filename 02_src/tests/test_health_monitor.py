"""Tests for HealthMonitor."""

import asyncio

import pytest

from agent_core.health import HealthMonitor
from agent_core.models import Message, Topic


@pytest.fixture
def monitor(registry, event_bus):
    return HealthMonitor(registry, event_bus=event_bus, interval=0.05, timeout=0.2)


class TestHealthCheckPass:
    """Tests for HealthMonitor.check_all()."""

    @pytest.mark.asyncio
    async def test_failed_check_excludes_until_recovery(self, monitor, registry, make_agent):
        """Test that a failing agent is hidden until a later check passes."""
        flaky = make_agent("flaky", capabilities=("cap",))
        steady = make_agent("steady", capabilities=("cap",))
        await registry.register(flaky)
        await registry.register(steady)

        flaky.healthy = False
        await monitor.check_all()
        assert registry.find_by_capability("cap") == [steady]

        flaky.healthy = True
        await monitor.check_all()
        assert registry.find_by_capability("cap") == [flaky, steady]

    @pytest.mark.asyncio
    async def test_unhealthy_agent_not_routed(self, monitor, registry, router, make_agent):
        """Test that routing skips agents the monitor marked unhealthy."""
        agent = make_agent("a1")
        await registry.register(agent)
        agent.healthy = False

        await monitor.check_all()

        assert await router.route(Message.create("job")) == []
        assert agent.received == []

    @pytest.mark.asyncio
    async def test_exception_and_timeout_mark_unhealthy(self, monitor, registry, make_agent):
        """Test that raising or hanging health checks count as failures."""
        raising = make_agent("raising")
        hanging = make_agent("hanging")
        await registry.register(raising)
        await registry.register(hanging)

        async def explode():
            raise ConnectionError("db down")

        raising.health_check = explode
        hanging.health_delay = 5.0

        reports = {r.agent_id: r for r in await monitor.check_all()}

        assert reports["raising"].healthy is False
        assert reports["raising"].error == "db down"
        assert reports["hanging"].healthy is False
        assert "timed out" in reports["hanging"].error
        assert not registry.is_healthy("raising")
        assert not registry.is_healthy("hanging")

    @pytest.mark.asyncio
    async def test_agents_are_never_unregistered(self, monitor, registry, make_agent):
        """Test that failing agents stay registered."""
        agent = make_agent("a1", healthy=False)
        await registry.register(agent)

        await monitor.check_all()

        assert registry.find_by_id("a1") is agent
        assert agent.shutdowns == 0

    @pytest.mark.asyncio
    async def test_change_events_only_on_transition(self, monitor, registry, event_bus, make_agent):
        """Test that health events fire only when a flag flips."""
        events = []

        async def handler(event):
            events.append(event.payload)

        event_bus.subscribe(Topic.HEALTH, handler)
        agent = make_agent("a1")
        await registry.register(agent)

        await monitor.check_all()
        agent.healthy = False
        await monitor.check_all()
        await monitor.check_all()

        assert events == [{"agent_id": "a1", "healthy": False, "error": "health check returned false"}]
        assert monitor.last_reports[0].healthy is False

    @pytest.mark.asyncio
    async def test_raised_timeout_reported_verbatim(self, monitor, registry, make_agent):
        """Test that a TimeoutError from the check itself keeps its own message."""
        agent = make_agent("a1")
        await registry.register(agent)

        async def ping_upstream():
            raise TimeoutError("ping to upstream timed out")

        agent.health_check = ping_upstream

        reports = await monitor.check_all()

        assert reports[0].healthy is False
        assert reports[0].error == "ping to upstream timed out"

    @pytest.mark.asyncio
    async def test_reports_dropped_for_unregistered_agents(self, monitor, registry, make_agent):
        """Test that last_reports only covers currently registered agents."""
        await registry.register(make_agent("a1"))
        await registry.register(make_agent("a2"))
        await monitor.check_all()

        await registry.unregister("a1")
        await monitor.check_all()

        assert [r.agent_id for r in monitor.last_reports] == ["a2"]


class TestHealthMonitorLoop:
    """Tests for the background polling loop."""

    @pytest.mark.asyncio
    async def test_loop_polls_periodically(self, monitor, registry, make_agent):
        """Test that the running loop updates health flags on its own."""
        agent = make_agent("a1")
        await registry.register(agent)

        await monitor.start()
        assert monitor.running
        try:
            agent.healthy = False
            await asyncio.sleep(0.2)
            assert not registry.is_healthy("a1")
        finally:
            await monitor.stop()

        assert not monitor.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, monitor):
        await monitor.stop()
        assert not monitor.running
