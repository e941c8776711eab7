"""Tool modules available to the gateway."""
from .base import ToolModule, ToolParam, action
from .n8n import N8nModule
from .n8n_client import N8nClient

__all__ = ["ToolModule", "ToolParam", "action", "N8nModule", "N8nClient"]
