"""Module registry: fixed mapping from module id to tool module."""
import logging
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .modules import N8nClient, N8nModule
from .modules.base import ToolModule

logger = logging.getLogger(__name__)

DELIMITER = ":"


class ModuleRegistry:
    """Ordered, startup-only registry of tool modules.

    Modules are registered while the process boots; ``freeze()`` then makes
    the registry read-only. Iteration order is registration order.
    """

    def __init__(self):
        self._modules: Dict[str, ToolModule] = {}
        self._frozen = False

    def register(self, module_id: str, module: ToolModule) -> None:
        if self._frozen:
            raise ConfigurationError(f"Registry is frozen, cannot register module '{module_id}'")
        if not module_id or DELIMITER in module_id:
            raise ConfigurationError(f"Invalid module id {module_id!r}: must be non-empty and not contain '{DELIMITER}'")
        if module_id in self._modules:
            raise ConfigurationError(f"Duplicate module id: {module_id}")
        if not isinstance(module, ToolModule):
            raise ConfigurationError(f"Module '{module_id}' does not implement ToolModule: {type(module).__name__}")
        self._modules[module_id] = module
        logger.info(f"Registered module: {module_id} ({type(module).__name__})")

    def freeze(self) -> "ModuleRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, module_id: str) -> Optional[ToolModule]:
        return self._modules.get(module_id)

    def entries(self) -> List[Tuple[str, ToolModule]]:
        return list(self._modules.items())

    def ids(self) -> List[str]:
        return list(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: str) -> bool:
        return module_id in self._modules


def build_registry(settings) -> ModuleRegistry:
    """Register every module enabled by ``settings`` and freeze the result."""
    registry = ModuleRegistry()
    client = N8nClient(
        settings.n8n_url,
        api_key=settings.n8n_api_key,
        username=settings.n8n_basic_auth_user,
        password=settings.n8n_basic_auth_password,
        read_timeout=settings.n8n_read_timeout,
        execute_timeout=settings.n8n_execute_timeout,
    )
    if not client.has_credentials:
        logger.warning("n8n: no API key or basic auth credentials configured, requests will be anonymous")
    registry.register("n8n", N8nModule(client, health_timeout=settings.health_timeout))
    return registry.freeze()
