"""Tool catalog builder: one flattened, namespaced tool list for all modules."""
import logging
from typing import List

from .errors import ConfigurationError
from .protocol import ToolDescriptor
from .registry import DELIMITER, ModuleRegistry

logger = logging.getLogger(__name__)


def qualify(module_id: str, action_name: str) -> str:
    return f"{module_id}{DELIMITER}{action_name}"


def build_catalog(registry: ModuleRegistry) -> List[ToolDescriptor]:
    """Return every module's descriptors, renamed to ``<module>:<action>``.

    Modules appear in registration order, each keeping its own action order.
    A module failing to list its tools fails the whole catalog. Descriptors
    returned by modules are copied, never modified.
    """
    catalog = []
    for module_id, module in registry.entries():
        for descriptor in module.list_descriptors():
            if not descriptor.name or DELIMITER in descriptor.name:
                raise ConfigurationError(
                    f"Module '{module_id}' published invalid action name {descriptor.name!r}"
                )
            catalog.append(descriptor.model_copy(update={"name": qualify(module_id, descriptor.name)}))
    return catalog
