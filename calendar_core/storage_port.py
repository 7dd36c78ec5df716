"""
Storage port used by the client core.

The core only talks to :class:`StoragePort`. Three backings share the same
contract: the REST service over HTTP (:class:`RemoteStorage`), a durable
local JSON file (:class:`calendar_core.local_storage.LocalStorage`) and a
composition of the two that falls back to local storage when the service is
unreachable (:class:`FallbackStorage`). One backing is chosen at startup by
:func:`select_storage`.
"""
from __future__ import annotations

import logging
import typing as t
from abc import ABC, abstractmethod

import httpx
from pydantic.alias_generators import to_camel

from services.shared.models import Note as PydanticNote, Task as PydanticTask
from timeblock_server.errors import NotFoundError, TransportError, ValidationError
from timeblock_server.models import Note, Task
from timeblock_server.store import MemStore

from .config import STANDARD_TIMEOUT, Settings

logger = logging.getLogger(__name__)


class StoragePort(ABC):
    """CRUD operations on the current user's notes and tasks.

    Updates and deletes of unknown ids raise NotFoundError; invalid input
    raises ValidationError; an unreachable backing raises TransportError.
    """

    @abstractmethod
    def list_notes(self) -> list[Note]: ...

    @abstractmethod
    def create_note(self, data: t.Mapping[str, t.Any]) -> Note: ...

    @abstractmethod
    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> Note: ...

    @abstractmethod
    def delete_note(self, note_id: str) -> None: ...

    @abstractmethod
    def list_tasks(self, date: t.Optional[str] = None) -> list[Task]: ...

    @abstractmethod
    def create_task(self, data: t.Mapping[str, t.Any]) -> Task: ...

    @abstractmethod
    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> Task: ...

    @abstractmethod
    def delete_task(self, task_id: str) -> None: ...


class StoreAdapter(StoragePort):
    """Storage port over an in-process MemStore, scoped to one user."""

    def __init__(self, store: MemStore, user_id: str) -> None:
        self.store = store
        self.user_id = user_id

    def list_notes(self) -> list[Note]:
        return self.store.list_notes(self.user_id)

    def create_note(self, data: t.Mapping[str, t.Any]) -> Note:
        return self.store.create_note(self.user_id, data)

    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> Note:
        note = self.store.update_note(note_id, changes)
        if note is None:
            raise NotFoundError("note", note_id)
        return note

    def delete_note(self, note_id: str) -> None:
        if not self.store.delete_note(note_id):
            raise NotFoundError("note", note_id)

    def list_tasks(self, date: t.Optional[str] = None) -> list[Task]:
        return self.store.list_tasks(self.user_id, date)

    def create_task(self, data: t.Mapping[str, t.Any]) -> Task:
        return self.store.create_task(self.user_id, data)

    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> Task:
        task = self.store.update_task(task_id, changes)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def delete_task(self, task_id: str) -> None:
        if not self.store.delete_task(task_id):
            raise NotFoundError("task", task_id)


class RemoteStorage(StoragePort):
    """Storage port backed by the TimeBlock REST service.

    The service attributes every request to its own demo user, so no user id
    is sent.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = STANDARD_TIMEOUT,
        transport: t.Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def list_notes(self) -> list[Note]:
        response = self._request("GET", "/api/notes", kind="note")
        return [_note_from_json(item) for item in response.json()]

    def create_note(self, data: t.Mapping[str, t.Any]) -> Note:
        response = self._request("POST", "/api/notes", kind="note", json=_to_wire(data))
        return _note_from_json(response.json())

    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> Note:
        response = self._request("PATCH", f"/api/notes/{note_id}", kind="note", item_id=note_id, json=_to_wire(changes))
        return _note_from_json(response.json())

    def delete_note(self, note_id: str) -> None:
        self._request("DELETE", f"/api/notes/{note_id}", kind="note", item_id=note_id)

    def list_tasks(self, date: t.Optional[str] = None) -> list[Task]:
        params = {"date": date} if date else None
        response = self._request("GET", "/api/tasks", kind="task", params=params)
        return [_task_from_json(item) for item in response.json()]

    def create_task(self, data: t.Mapping[str, t.Any]) -> Task:
        response = self._request("POST", "/api/tasks", kind="task", json=_to_wire(data))
        return _task_from_json(response.json())

    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> Task:
        response = self._request("PATCH", f"/api/tasks/{task_id}", kind="task", item_id=task_id, json=_to_wire(changes))
        return _task_from_json(response.json())

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}", kind="task", item_id=task_id)

    def _request(
        self,
        method: str,
        path: str,
        kind: str,
        item_id: str = "",
        json: t.Optional[dict[str, t.Any]] = None,
        params: t.Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, path, json=json, params=params)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out after {self.timeout} seconds") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise NotFoundError(kind, item_id) from e
            if status in (400, 422):
                raise ValidationError(_detail(e.response, f"Invalid {kind} data")) from e
            raise TransportError(f"HTTP error from timeblock service: {status} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Error calling timeblock service: {e}") from e
        return response


class FallbackStorage(StoragePort):
    """Tries the primary backing first and the fallback on TransportError.

    Each operation is attempted at most once per backing. If the fallback also
    fails, a TransportError is raised for the caller to report. A fallback
    NotFoundError after a primary TransportError is also reported as a
    TransportError: the record may still live on the unreachable primary.
    """

    def __init__(self, primary: StoragePort, fallback: StoragePort) -> None:
        self.primary = primary
        self.fallback = fallback

    def list_notes(self) -> list[Note]:
        return self._call("list_notes")

    def create_note(self, data: t.Mapping[str, t.Any]) -> Note:
        return self._call("create_note", data)

    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> Note:
        return self._call("update_note", note_id, changes)

    def delete_note(self, note_id: str) -> None:
        self._call("delete_note", note_id)

    def list_tasks(self, date: t.Optional[str] = None) -> list[Task]:
        return self._call("list_tasks", date)

    def create_task(self, data: t.Mapping[str, t.Any]) -> Task:
        return self._call("create_task", data)

    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> Task:
        return self._call("update_task", task_id, changes)

    def delete_task(self, task_id: str) -> None:
        self._call("delete_task", task_id)

    def _call(self, operation: str, *args: t.Any) -> t.Any:
        try:
            return getattr(self.primary, operation)(*args)
        except TransportError as e:
            logger.warning("%s failed on primary storage (%s); using local storage", operation, e)
        try:
            return getattr(self.fallback, operation)(*args)
        except NotFoundError as e:
            raise TransportError(f"{operation} could not reach the storage that holds {e.kind} {e.item_id}") from e
        except TransportError as e:
            raise TransportError(f"{operation} failed on both primary and fallback storage") from e


def select_storage(settings: Settings, transport: t.Optional[httpx.BaseTransport] = None) -> StoragePort:
    """Build the storage backing named by ``settings.storage_mode``."""
    from .local_storage import LocalStorage

    if settings.storage_mode == "local":
        return LocalStorage(settings.local_store_path, settings.user_id)
    remote = RemoteStorage(settings.service_url, timeout=settings.timeout, transport=transport)
    if settings.storage_mode == "remote":
        return remote
    return FallbackStorage(remote, LocalStorage(settings.local_store_path, settings.user_id))


def _to_wire(data: t.Mapping[str, t.Any]) -> dict[str, t.Any]:
    """snake_case field names to the service's camelCase JSON keys."""
    return {to_camel(key): value for key, value in data.items()}


def _note_from_json(data: t.Mapping[str, t.Any]) -> Note:
    """Convert service JSON to dataclass Note."""
    return Note(**PydanticNote.model_validate(data).model_dump())


def _task_from_json(data: t.Mapping[str, t.Any]) -> Task:
    """Convert service JSON to dataclass Task."""
    return Task(**PydanticTask.model_validate(data).model_dump())


def _detail(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return default
