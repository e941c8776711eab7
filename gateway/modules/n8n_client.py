"""n8n public REST API client (workflows + executions)."""
import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import BackendError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
API_KEY_HEADER = "X-N8N-API-KEY"


class N8nClient:
    """Thin async wrapper over the n8n REST API.

    Holds configuration only; every request opens its own ``httpx.AsyncClient``
    with an explicit timeout, so instances are safe to share between
    concurrent calls. All failures are raised as ``BackendError``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        username: str = "",
        password: str = "",
        read_timeout: float = 10.0,
        execute_timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.username = username
        self.password = password
        self.read_timeout = read_timeout
        self.execute_timeout = execute_timeout
        self._transport = transport

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key or (self.username and self.password))

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return headers

    def _auth(self) -> Optional[httpx.BasicAuth]:
        # API key wins over basic auth when both are configured
        if not self.api_key and self.username and self.password:
            return httpx.BasicAuth(self.username, self.password)
        return None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self.base_url}{API_PREFIX}{path}"
        timeout = timeout or self.read_timeout
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.request(
                    method, url,
                    headers=self._headers(),
                    auth=self._auth(),
                    params=params,
                    json=json_body,
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            logger.warning(f"n8n {method} {path} -> HTTP {status}: {detail}")
            raise BackendError(f"n8n returned HTTP {status}: {detail}", status_code=status) from e
        except httpx.TimeoutException as e:
            logger.warning(f"n8n {method} {path} timed out after {timeout}s")
            raise BackendError(f"n8n request timed out after {timeout:g}s") from e
        except httpx.HTTPError as e:
            logger.warning(f"n8n {method} {path} failed: {e}")
            raise BackendError(f"n8n request failed: {str(e) or type(e).__name__}") from e

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"n8n returned a non-JSON response (HTTP {resp.status_code})") from e

    # ── Workflows ─────────────────────────────────────────────

    async def list_workflows(self, active: Optional[bool] = None, limit: Optional[int] = None) -> Any:
        params = {}
        if active is not None:
            params["active"] = "true" if active else "false"
        if limit is not None:
            params["limit"] = limit
        return await self.request("GET", "/workflows", params=params or None)

    async def get_workflow(self, workflow_id: str) -> Any:
        return await self.request("GET", f"/workflows/{workflow_id}")

    async def create_workflow(self, definition: Dict[str, Any]) -> Any:
        return await self.request("POST", "/workflows", json_body=definition)

    async def update_workflow(self, workflow_id: str, definition: Dict[str, Any]) -> Any:
        return await self.request("PUT", f"/workflows/{workflow_id}", json_body=definition)

    async def delete_workflow(self, workflow_id: str) -> Any:
        return await self.request("DELETE", f"/workflows/{workflow_id}")

    async def activate_workflow(self, workflow_id: str) -> Any:
        return await self.request("POST", f"/workflows/{workflow_id}/activate")

    async def deactivate_workflow(self, workflow_id: str) -> Any:
        return await self.request("POST", f"/workflows/{workflow_id}/deactivate")

    async def execute_workflow(self, workflow_id: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request(
            "POST", f"/workflows/{workflow_id}/execute",
            json_body={"data": data or {}},
            timeout=self.execute_timeout,
        )

    # ── Executions ────────────────────────────────────────────

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Any:
        params = {}
        if workflow_id:
            params["workflowId"] = workflow_id
        if status:
            params["status"] = status
        if limit is not None:
            params["limit"] = limit
        return await self.request("GET", "/executions", params=params or None)

    async def get_execution(self, execution_id: str) -> Any:
        return await self.request("GET", f"/executions/{execution_id}")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return str(body)[:200]


def unwrap(payload: Any) -> Any:
    """n8n wraps most bodies in ``{"data": ...}``; older versions do not."""
    if isinstance(payload, dict) and "data" in payload and "id" not in payload:
        return payload["data"]
    return payload
