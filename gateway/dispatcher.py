"""Dispatcher: resolve ``<module>:<action>`` and normalize the outcome.

Caller mistakes (malformed name, unknown module, unknown action) raise
``McpError`` and become protocol errors. Anything that goes wrong while the
action runs is returned in-band as a ``ToolResult`` with ``is_error`` set.
"""
import logging
import time
from typing import Any, Dict, Tuple

from .errors import ErrorCode, McpError
from .protocol import ToolResult
from .registry import DELIMITER, ModuleRegistry

logger = logging.getLogger(__name__)


def parse_qualified_name(name: str) -> Tuple[str, str]:
    """Split on the first delimiter. Both sides must be non-empty."""
    module_id, sep, action_name = (name or "").partition(DELIMITER)
    if not sep or not module_id or not action_name:
        raise McpError(
            ErrorCode.INVALID_PARAMS,
            f"Malformed tool name: {name!r} (expected '<module>{DELIMITER}<action>')",
        )
    return module_id, action_name


def describe_error(error: BaseException) -> str:
    return str(error) or type(error).__name__


async def dispatch(registry: ModuleRegistry, name: str, arguments: Dict[str, Any]) -> ToolResult:
    module_id, action_name = parse_qualified_name(name)

    module = registry.resolve(module_id)
    if module is None:
        raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Unknown module: {module_id}")
    if action_name not in module.action_names():
        raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Unknown action for module '{module_id}': {action_name}")

    arg_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
    logger.info(f"Executing tool: {name}({arg_str})")
    t0 = time.monotonic()

    try:
        result = await module.invoke(action_name, dict(arguments))
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}", exc_info=True)
        result = ToolResult.error(f"Error: {describe_error(e)}")

    if isinstance(result, str):
        result = ToolResult.text(result)
    elif not isinstance(result, ToolResult):
        logger.error(f"Tool {name} returned {type(result).__name__} instead of ToolResult")
        result = ToolResult.error(f"Error: tool {name} returned an invalid result")

    elapsed = time.monotonic() - t0
    logger.info(f"Tool {name}: {elapsed:.1f}s -> {'error' if result.is_error else 'ok'}")
    return result
