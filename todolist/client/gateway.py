from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from todolist.config import get_settings
from todolist.errors import TaskGatewayError
from todolist.schema import NewTask, Task, TaskFilter, TaskUpdate

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> Optional[str]:
    """Pull FastAPI's ``detail`` out of an error response, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        msgs = [str(d.get("msg")) for d in detail if isinstance(d, dict) and d.get("msg")]
        return "; ".join(msgs) or None
    return None


def _parse_task(data: Any) -> Task:
    try:
        return Task.model_validate(data)
    except ValidationError as e:
        raise TaskGatewayError(f"Malformed task in response: {e}") from e


class TaskGateway:
    """
    Thin typed wrapper around the task HTTP API.

    Read paths turn the wire ``dueDate`` into a ``datetime.date``; write
    paths send what the caller gave. No retries, no caching.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if client is None:
            settings = get_settings()
            client = httpx.AsyncClient(
                base_url=base_url or settings.api_url,
                timeout=timeout if timeout is not None else settings.http_timeout,
            )
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TaskGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TaskGatewayError(f"{method} {path} failed: {e}") from e

        if resp.is_error:
            detail = _error_detail(resp)
            raise TaskGatewayError(
                detail or f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                detail=detail,
            )
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if not resp.content:
            return None
        return resp.json()

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> list[Task]:
        params = task_filter.to_query() if task_filter is not None else None
        data = await self._request("GET", "/tasks", params=params)
        return [_parse_task(item) for item in data or []]

    async def get_task(self, task_id: int) -> Task:
        data = await self._request("GET", f"/tasks/{task_id}")
        return _parse_task(data)

    async def update_task(self, task_id: int, fields: Union[TaskUpdate, Mapping[str, Any]]) -> Task:
        if not isinstance(fields, TaskUpdate):
            fields = TaskUpdate.model_validate(fields)
        body = fields.model_dump(mode="json", by_alias=True, exclude_unset=True)
        data = await self._request("PATCH", f"/tasks/{task_id}", json=body)
        return _parse_task(data)

    async def delete_task(self, task_id: int) -> list[Task]:
        data = await self._request("DELETE", f"/tasks/{task_id}")
        return [_parse_task(item) for item in data or []]

    async def create_task(self, new_task: Union[NewTask, Mapping[str, Any]]) -> Task:
        if not isinstance(new_task, NewTask):
            new_task = NewTask.model_validate(new_task)
        body = new_task.model_dump(mode="json", by_alias=True, exclude_unset=True)
        data = await self._request("POST", "/tasks", json=body)
        return _parse_task(data)
