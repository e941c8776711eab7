"""n8n workflow automation module: workflow CRUD, execution and history."""
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from ..errors import BackendError
from ..protocol import HealthStatus, ToolResult
from .base import ToolModule, ToolParam, action
from .n8n_client import N8nClient, unwrap
from .templates import build_scraping_workflow

logger = logging.getLogger(__name__)

EXECUTION_STATUSES = ["success", "error", "waiting", "running", "canceled"]

_ID = ToolParam("id", description="workflow ID")


@contextmanager
def _backend_call(what: str):
    """Prefix backend failures with the operation that was attempted."""
    try:
        yield
    except BackendError as e:
        raise BackendError(f"Could not {what}: {e}", status_code=e.status_code) from e


def _as_list(payload: Any) -> List[dict]:
    data = unwrap(payload)
    return data if isinstance(data, list) else []


def _workflow_summary(workflow: Dict[str, Any]) -> str:
    status = "active" if workflow.get("active") else "inactive"
    return f"- {workflow.get('name', '?')} (ID: {workflow.get('id', '?')}) - {status}"


def _workflow_details(workflow: Dict[str, Any]) -> str:
    nodes = workflow.get("nodes") or []
    lines = [
        f"Workflow: {workflow.get('name', '?')}",
        f"ID: {workflow.get('id', '?')}",
        f"Active: {'yes' if workflow.get('active') else 'no'}",
        f"Nodes: {len(nodes)}",
    ]
    if nodes:
        lines.append("")
        for node in nodes:
            lines.append(f"  - {node.get('name', '?')} [{node.get('type', '?')}]")
    if workflow.get("updatedAt"):
        lines.append(f"Updated: {workflow['updatedAt']}")
    return "\n".join(lines)


def _execution_summary(execution: Dict[str, Any]) -> str:
    status = execution.get("status") or ("success" if execution.get("finished") else "unknown")
    started = execution.get("startedAt") or "?"
    return (
        f"- Execution {execution.get('id', '?')} of workflow {execution.get('workflowId', '?')}: "
        f"{status} (started {started})"
    )


class N8nModule(ToolModule):
    """Exposes one n8n instance as MCP tools."""

    def __init__(self, client: N8nClient, health_timeout: float = 5.0):
        self.client = client
        self.health_timeout = health_timeout

    async def probe_health(self) -> HealthStatus:
        try:
            await self.client.request("GET", "/workflows", params={"limit": 1}, timeout=self.health_timeout)
        except BackendError as e:
            return HealthStatus.unhealthy(str(e))
        return HealthStatus.healthy(self.client.base_url)

    @action("test_connection", description="Test the connection to n8n")
    async def test_connection(self) -> ToolResult:
        try:
            await self.client.list_workflows()
        except BackendError as e:
            return ToolResult.error(f"Connection to n8n failed: {e}")
        return ToolResult.text(f"Connected to n8n at {self.client.base_url}")

    @action(
        "list_workflows",
        description="List all n8n workflows",
        params=[
            ToolParam("active", type="boolean", description="only active (true) or inactive (false) workflows",
                      required=False),
            ToolParam("limit", type="integer", description="maximum number of workflows", required=False,
                      schema={"minimum": 1}),
        ],
    )
    async def list_workflows(self, active: Optional[bool] = None, limit: Optional[int] = None) -> ToolResult:
        with _backend_call("list workflows"):
            workflows = _as_list(await self.client.list_workflows(active=active, limit=limit))
        if not workflows:
            return ToolResult.text("No workflows found.")
        lines = [f"Workflows found ({len(workflows)}):", ""]
        lines.extend(_workflow_summary(w) for w in workflows)
        return ToolResult.text("\n".join(lines))

    @action("get_workflow", description="Get the details of a workflow", params=[_ID])
    async def get_workflow(self, id: str) -> ToolResult:
        with _backend_call("get workflow"):
            workflow = unwrap(await self.client.get_workflow(id))
        return ToolResult.text(_workflow_details(workflow))

    @action(
        "create_workflow",
        description="Create a workflow from a full definition (nodes and connections)",
        params=[
            ToolParam("name", description="workflow name"),
            ToolParam("nodes", type="array", description="n8n node definitions", schema={"items": {"type": "object"}}),
            ToolParam("connections", type="object", description="connections between nodes, keyed by source node name"),
            ToolParam("settings", type="object", description="workflow settings", required=False, default={}),
        ],
    )
    async def create_workflow(self, name: str, nodes: list, connections: dict, settings: dict) -> ToolResult:
        definition = {"name": name, "nodes": nodes, "connections": connections, "settings": settings}
        with _backend_call("create workflow"):
            created = unwrap(await self.client.create_workflow(definition))
        return ToolResult.text(f"Workflow created: {created.get('name', name)} (ID: {created.get('id', 'N/A')})")

    @action(
        "update_workflow",
        description="Update a workflow; omitted fields keep their current value",
        params=[
            _ID,
            ToolParam("name", description="new workflow name", required=False),
            ToolParam("nodes", type="array", description="replacement node definitions", required=False,
                      schema={"items": {"type": "object"}}),
            ToolParam("connections", type="object", description="replacement connections", required=False),
            ToolParam("settings", type="object", description="replacement settings", required=False),
        ],
    )
    async def update_workflow(self, id: str, name: Optional[str] = None, nodes: Optional[list] = None,
                              connections: Optional[dict] = None, settings: Optional[dict] = None) -> ToolResult:
        with _backend_call("update workflow"):
            current = unwrap(await self.client.get_workflow(id))
            # PUT replaces the whole definition, so start from the stored one
            definition = {
                "name": name if name is not None else current.get("name", ""),
                "nodes": nodes if nodes is not None else current.get("nodes", []),
                "connections": connections if connections is not None else current.get("connections", {}),
                "settings": settings if settings is not None else current.get("settings", {}),
            }
            updated = unwrap(await self.client.update_workflow(id, definition))
        return ToolResult.text(f"Workflow updated: {updated.get('name', definition['name'])} (ID: {id})")

    @action("delete_workflow", description="Delete a workflow", params=[_ID])
    async def delete_workflow(self, id: str) -> ToolResult:
        with _backend_call("delete workflow"):
            await self.client.delete_workflow(id)
        return ToolResult.text(f"Workflow {id} deleted.")

    @action("activate_workflow", description="Activate a workflow so its triggers run", params=[_ID])
    async def activate_workflow(self, id: str) -> ToolResult:
        with _backend_call("activate workflow"):
            workflow = unwrap(await self.client.activate_workflow(id))
        return ToolResult.text(f"Workflow activated: {workflow.get('name', id)} (ID: {id})")

    @action("deactivate_workflow", description="Deactivate a workflow", params=[_ID])
    async def deactivate_workflow(self, id: str) -> ToolResult:
        with _backend_call("deactivate workflow"):
            workflow = unwrap(await self.client.deactivate_workflow(id))
        return ToolResult.text(f"Workflow deactivated: {workflow.get('name', id)} (ID: {id})")

    @action(
        "execute_workflow",
        description="Execute a workflow",
        params=[
            _ID,
            ToolParam("data", type="object", description="input data", required=False, default={}),
        ],
    )
    async def execute_workflow(self, id: str, data: dict) -> ToolResult:
        with _backend_call("execute workflow"):
            execution = unwrap(await self.client.execute_workflow(id, data))
        if not isinstance(execution, dict):
            execution = {}
        return ToolResult.text(
            "Workflow executed!\n"
            f"Execution ID: {execution.get('id') or execution.get('executionId') or 'N/A'}\n"
            f"Status: {execution.get('status') or 'running'}"
        )

    @action(
        "list_executions",
        description="List recent workflow executions",
        params=[
            ToolParam("workflowId", description="only executions of this workflow", required=False),
            ToolParam("status", description="filter by execution status", required=False,
                      schema={"enum": EXECUTION_STATUSES}),
            ToolParam("limit", type="integer", description="maximum number of executions", required=False,
                      default=20, schema={"minimum": 1}),
        ],
    )
    async def list_executions(self, workflowId: Optional[str] = None, status: Optional[str] = None,
                              limit: int = 20) -> ToolResult:
        with _backend_call("list executions"):
            executions = _as_list(await self.client.list_executions(workflowId, status, limit))
        if not executions:
            return ToolResult.text("No executions found.")
        lines = [f"Executions found ({len(executions)}):", ""]
        lines.extend(_execution_summary(e) for e in executions)
        return ToolResult.text("\n".join(lines))

    @action("get_execution", description="Get an execution record",
            params=[ToolParam("id", description="execution ID")])
    async def get_execution(self, id: str) -> ToolResult:
        with _backend_call("get execution"):
            execution = unwrap(await self.client.get_execution(id))
        return ToolResult.text(json.dumps(execution, indent=2, ensure_ascii=False, default=str))

    @action(
        "create_scraping_workflow",
        description="Create a scheduled workflow scraping listings for a location into a Google Sheet",
        params=[
            ToolParam("location", description="city or area to scrape"),
            ToolParam("destination", description="Google Sheets document ID receiving the rows"),
            ToolParam("name", description="workflow name", required=False),
        ],
    )
    async def create_scraping_workflow(self, location: str, destination: str,
                                       name: Optional[str] = None) -> ToolResult:
        try:
            definition = build_scraping_workflow(location, destination, name=name)
        except ValueError as e:
            return ToolResult.error(f"Invalid scraping parameters: {e}")
        with _backend_call("create scraping workflow"):
            created = unwrap(await self.client.create_workflow(definition))
        logger.info(f"Created scraping workflow for {location!r} -> {destination}")
        return ToolResult.text(
            f"Scraping workflow created: {created.get('name', definition['name'])} "
            f"(ID: {created.get('id', 'N/A')}, {len(definition['nodes'])} nodes). "
            "Activate it to start the schedule."
        )
