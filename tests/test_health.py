"""Tests for health.py: per-module isolation and timeouts."""
import pytest

from gateway.health import aggregate_health
from gateway.registry import ModuleRegistry


class TestAggregateHealth:
    @pytest.mark.asyncio
    async def test_all_healthy(self, echo_registry):
        report = await aggregate_health(echo_registry)
        assert report.overall == "healthy"
        assert report.modules["echo"].state == "healthy"
        assert report.modules["echo"].detail == "echo ok"
        assert report.timestamp

    @pytest.mark.asyncio
    async def test_failing_probe_isolated(self, make_registry, echo_module, broken_probe_module):
        registry = make_registry(echo=echo_module, broken=broken_probe_module, other=type(echo_module)())
        report = await aggregate_health(registry)
        assert report.overall == "degraded"
        assert set(report.modules) == {"echo", "broken", "other"}
        assert report.modules["broken"].state == "unhealthy"
        assert "backend down" in report.modules["broken"].detail
        assert report.modules["echo"].state == "healthy"
        assert report.modules["other"].state == "healthy"

    @pytest.mark.asyncio
    async def test_slow_probe_times_out(self, make_registry, echo_module, slow_probe_module):
        registry = make_registry(echo=echo_module, slow=slow_probe_module)
        report = await aggregate_health(registry, timeout=0.05)
        assert report.overall == "degraded"
        assert report.modules["slow"].state == "unhealthy"
        assert "timed out" in report.modules["slow"].detail
        assert report.modules["echo"].state == "healthy"

    @pytest.mark.asyncio
    async def test_empty_registry_is_healthy(self):
        report = await aggregate_health(ModuleRegistry().freeze())
        assert report.overall == "healthy"
        assert report.modules == {}
