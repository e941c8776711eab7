"""Tool module interface: decorator-based action registration per module."""
import copy
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import ErrorCode, McpError
from ..protocol import HealthStatus, ToolDescriptor, ToolResult

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "object": dict,
    "array": list,
}


@dataclass
class ToolParam:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    default: Any = None
    schema: Dict[str, Any] = field(default_factory=dict)  # extra JSON schema keys

    def check(self, value: Any) -> Optional[str]:
        """Return what is wrong with ``value`` for this param, or None."""
        expected = _JSON_TYPES.get(self.type)
        # bool is an int subclass but never a JSON number
        if expected and (not isinstance(value, expected) or
                         (isinstance(value, bool) and self.type in ("integer", "number"))):
            return f"expected {self.type}, got {type(value).__name__}"
        if "enum" in self.schema and value not in self.schema["enum"]:
            return f"must be one of {', '.join(map(str, self.schema['enum']))}"
        if "minimum" in self.schema and value < self.schema["minimum"]:
            return f"must be >= {self.schema['minimum']}"
        return None

    def to_schema(self) -> dict:
        prop = {"type": self.type, **self.schema}
        if self.description:
            prop["description"] = self.description
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass
class ActionDef:
    name: str
    description: str
    params: List[ToolParam]
    handler: Callable

    def descriptor(self) -> ToolDescriptor:
        properties = {p.name: p.to_schema() for p in self.params}
        schema = {"type": "object", "properties": properties}
        required = [p.name for p in self.params if p.required]
        if required:
            schema["required"] = required
        return ToolDescriptor(name=self.name, description=self.description, input_schema=schema)


def action(name: str, description: str = "", params: Optional[List[ToolParam]] = None):
    """Decorator marking an async method of a ToolModule as a published action."""
    def decorator(func):
        func._action_def = ActionDef(
            name=name,
            description=description or inspect.getdoc(func) or "",
            params=params or [],
            handler=func,
        )
        return func
    return decorator


class ToolModule(ABC):
    """A capability provider translating named actions into backend calls.

    Subclasses declare actions with ``@action``; the action table is built once
    per class, in declaration order, and never changes afterwards. Instances
    hold only configuration captured at construction.
    """

    _actions: Dict[str, ActionDef] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        actions: Dict[str, ActionDef] = {}
        for klass in reversed(cls.__mro__):
            for attr in vars(klass).values():
                action_def = getattr(attr, "_action_def", None)
                if action_def is not None:
                    actions[action_def.name] = action_def
        cls._actions = actions

    def list_descriptors(self) -> List[ToolDescriptor]:
        return [a.descriptor() for a in self._actions.values()]

    def action_names(self) -> List[str]:
        """Names accepted by ``invoke``: exactly what ``list_descriptors`` publishes."""
        return [d.name for d in self.list_descriptors()]

    async def invoke(self, action_name: str, arguments: Dict[str, Any]) -> ToolResult:
        action_def = self._actions.get(action_name)
        if action_def is None:
            raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Unknown action: {action_name}")

        kwargs = {}
        for param in action_def.params:
            if param.name in arguments and arguments[param.name] is not None:
                problem = param.check(arguments[param.name])
                if problem:
                    return ToolResult.error(f"Invalid argument '{param.name}': {problem}")
                kwargs[param.name] = arguments[param.name]
            elif param.required:
                return ToolResult.error(f"Missing required argument: {param.name}")
            elif param.default is not None:
                kwargs[param.name] = copy.deepcopy(param.default)

        ignored = sorted(set(arguments) - set(kwargs) - {p.name for p in action_def.params})
        if ignored:
            logger.debug(f"{type(self).__name__}.{action_name}: ignoring unknown arguments {ignored}")

        return await action_def.handler(self, **kwargs)

    @abstractmethod
    async def probe_health(self) -> HealthStatus:
        ...
