"""Shared fixtures: small in-process tool modules and registries built from them."""
import asyncio

import pytest

from gateway.modules.base import ToolModule, ToolParam, action
from gateway.protocol import HealthStatus, ToolResult
from gateway.registry import ModuleRegistry
from gateway.service import ToolService


class EchoModule(ToolModule):
    @action("ping", description="Reply with pong")
    async def ping(self) -> ToolResult:
        return ToolResult.text("pong")

    @action("echo", description="Echo a message", params=[ToolParam("message", description="text to echo")])
    async def echo(self, message: str) -> ToolResult:
        return ToolResult.text(message)

    @action("boom", description="Always fails")
    async def boom(self) -> ToolResult:
        raise RuntimeError("x")

    @action("soft_fail", description="Reports its own failure")
    async def soft_fail(self) -> ToolResult:
        return ToolResult.error("backend said no")

    async def probe_health(self) -> HealthStatus:
        return HealthStatus.healthy("echo ok")


class BrokenProbeModule(ToolModule):
    @action("noop")
    async def noop(self) -> ToolResult:
        return ToolResult.text("ok")

    async def probe_health(self) -> HealthStatus:
        raise ConnectionError("backend down")


class SlowProbeModule(ToolModule):
    @action("noop")
    async def noop(self) -> ToolResult:
        return ToolResult.text("ok")

    async def probe_health(self) -> HealthStatus:
        await asyncio.sleep(10)
        return HealthStatus.healthy()


class BrokenCatalogModule(ToolModule):
    def list_descriptors(self):
        raise RuntimeError("manifest unavailable")

    async def probe_health(self) -> HealthStatus:
        return HealthStatus.healthy()


@pytest.fixture
def echo_module():
    return EchoModule()


@pytest.fixture
def echo_registry(echo_module):
    registry = ModuleRegistry()
    registry.register("echo", echo_module)
    return registry.freeze()


@pytest.fixture
def service(echo_registry):
    return ToolService(echo_registry, health_timeout=0.2)


@pytest.fixture
def broken_probe_module():
    return BrokenProbeModule()


@pytest.fixture
def slow_probe_module():
    return SlowProbeModule()


@pytest.fixture
def broken_catalog_module():
    return BrokenCatalogModule()


@pytest.fixture
def make_registry():
    """Build a frozen registry from ``module_id=module`` keyword arguments."""
    def _make(**modules):
        registry = ModuleRegistry()
        for module_id, module in modules.items():
            registry.register(module_id, module)
        return registry.freeze()
    return _make
