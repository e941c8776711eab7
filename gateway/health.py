"""Health aggregator: probe every module independently."""
import asyncio
import logging

from .dispatcher import describe_error
from .protocol import HealthReport, HealthStatus
from .modules.base import ToolModule
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0


async def _probe(module_id: str, module: ToolModule, timeout: float) -> HealthStatus:
    try:
        status = await asyncio.wait_for(module.probe_health(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Health probe for {module_id} timed out after {timeout:g}s")
        return HealthStatus.unhealthy(f"health probe timed out after {timeout:g}s")
    except Exception as e:
        logger.warning(f"Health probe for {module_id} failed: {e}")
        return HealthStatus.unhealthy(describe_error(e))
    if not isinstance(status, HealthStatus):
        return HealthStatus.unhealthy(f"invalid health status: {status!r}")
    return status


async def aggregate_health(registry: ModuleRegistry, timeout: float = DEFAULT_PROBE_TIMEOUT) -> HealthReport:
    """Run all probes concurrently; one failing probe never hides the others."""
    entries = registry.entries()
    statuses = await asyncio.gather(*(_probe(mid, module, timeout) for mid, module in entries))
    modules = {mid: status for (mid, _), status in zip(entries, statuses)}
    overall = "healthy" if all(s.is_healthy for s in statuses) else "degraded"
    return HealthReport(overall=overall, modules=modules)
