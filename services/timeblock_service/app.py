"""
FastAPI service for notes and tasks.

This service exposes the entity store in timeblock_server/store.py as REST
endpoints. Authentication is a stub: every request is attributed to a single
demo user supplied by the ``current_user_id`` dependency.
"""
from __future__ import annotations

import logging
import os
import typing as t
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from services.shared.models import (
    Note as PydanticNote,
    Task as PydanticTask,
    CreateNoteRequest,
    UpdateNoteRequest,
    CreateTaskRequest,
    UpdateTaskRequest,
    DeleteResponse,
)
from timeblock_server.errors import ValidationError
from timeblock_server.models import Note, Task
from timeblock_server.store import MemStore


logger = logging.getLogger(__name__)

DEMO_USER_ID = os.getenv("TIMEBLOCK_DEMO_USER_ID", "demo-user-id")

# In-memory storage for notes and tasks
# In a real deployment, this would be replaced with a persistent database
store = MemStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    logger.info("TimeBlock service starting (demo user %s)", DEMO_USER_ID)
    yield


app = FastAPI(
    title="TimeBlock Service",
    description="REST API for notes and time-blocked tasks",
    version="1.0.0",
    lifespan=lifespan,
)


def current_user_id() -> str:
    """Mock authentication: every request belongs to the demo user."""
    return DEMO_USER_ID


def get_store() -> MemStore:
    """Dependency returning the service's entity store."""
    return store


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    kind = "task" if request.url.path.startswith("/api/tasks") else "note"
    return JSONResponse(
        status_code=400,
        content={"detail": f"Invalid {kind} data", "errors": _jsonable_errors(exc.errors())},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "timeblock-service"}


# ---------- notes ----------
@app.get("/api/notes", response_model=list[PydanticNote])
async def list_notes(
    user_id: str = Depends(current_user_id),
    notes_store: MemStore = Depends(get_store),
) -> list[PydanticNote]:
    """List the current user's notes, most recent first."""
    try:
        return [_note_to_pydantic(note) for note in notes_store.list_notes(user_id)]
    except Exception:
        logger.exception("Failed to fetch notes")
        raise HTTPException(status_code=500, detail="Failed to fetch notes")


@app.post("/api/notes", response_model=PydanticNote)
async def create_note(
    request: CreateNoteRequest,
    user_id: str = Depends(current_user_id),
    notes_store: MemStore = Depends(get_store),
) -> PydanticNote:
    """Create a note in the drawer."""
    try:
        note = notes_store.create_note(user_id, request.model_dump())
        return _note_to_pydantic(note)
    except ValidationError as e:
        raise _bad_request(e)
    except Exception:
        logger.exception("Failed to create note")
        raise HTTPException(status_code=500, detail="Failed to create note")


@app.patch("/api/notes/{note_id}", response_model=PydanticNote)
async def update_note(
    note_id: str,
    request: UpdateNoteRequest,
    notes_store: MemStore = Depends(get_store),
) -> PydanticNote:
    """Update only the fields present in the request body."""
    try:
        note = notes_store.update_note(note_id, request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise _bad_request(e)
    except Exception:
        logger.exception("Failed to update note %s", note_id)
        raise HTTPException(status_code=500, detail="Failed to update note")
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return _note_to_pydantic(note)


@app.delete("/api/notes/{note_id}", response_model=DeleteResponse)
async def delete_note(note_id: str, notes_store: MemStore = Depends(get_store)) -> DeleteResponse:
    """Delete a note."""
    try:
        deleted = notes_store.delete_note(note_id)
    except Exception:
        logger.exception("Failed to delete note %s", note_id)
        raise HTTPException(status_code=500, detail="Failed to delete note")
    if not deleted:
        raise HTTPException(status_code=404, detail="Note not found")
    return DeleteResponse(success=True)


# ---------- tasks ----------
@app.get("/api/tasks", response_model=list[PydanticTask])
async def list_tasks(
    date: t.Optional[str] = None,
    user_id: str = Depends(current_user_id),
    tasks_store: MemStore = Depends(get_store),
) -> list[PydanticTask]:
    """List the current user's tasks, optionally for a single date."""
    try:
        return [_task_to_pydantic(task) for task in tasks_store.list_tasks(user_id, date)]
    except Exception:
        logger.exception("Failed to fetch tasks")
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")


@app.post("/api/tasks", response_model=PydanticTask)
async def create_task(
    request: CreateTaskRequest,
    user_id: str = Depends(current_user_id),
    tasks_store: MemStore = Depends(get_store),
) -> PydanticTask:
    """Create a task on a date, optionally at a start time."""
    try:
        task = tasks_store.create_task(user_id, request.model_dump())
        return _task_to_pydantic(task)
    except ValidationError as e:
        raise _bad_request(e)
    except Exception:
        logger.exception("Failed to create task")
        raise HTTPException(status_code=500, detail="Failed to create task")


@app.patch("/api/tasks/{task_id}", response_model=PydanticTask)
@app.put("/api/tasks/{task_id}", response_model=PydanticTask)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    tasks_store: MemStore = Depends(get_store),
) -> PydanticTask:
    """Update only the fields present in the request body.

    PUT is accepted as an alias of PATCH for older clients.
    """
    try:
        task = tasks_store.update_task(task_id, request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise _bad_request(e)
    except Exception:
        logger.exception("Failed to update task %s", task_id)
        raise HTTPException(status_code=500, detail="Failed to update task")
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return _task_to_pydantic(task)


@app.delete("/api/tasks/{task_id}", response_model=DeleteResponse)
async def delete_task(task_id: str, tasks_store: MemStore = Depends(get_store)) -> DeleteResponse:
    """Delete a task."""
    try:
        deleted = tasks_store.delete_task(task_id)
    except Exception:
        logger.exception("Failed to delete task %s", task_id)
        raise HTTPException(status_code=500, detail="Failed to delete task")
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")
    return DeleteResponse(success=True)


def _note_to_pydantic(note: Note) -> PydanticNote:
    """Convert dataclass Note to Pydantic Note."""
    return PydanticNote(**asdict(note))


def _task_to_pydantic(task: Task) -> PydanticTask:
    """Convert dataclass Task to Pydantic Task."""
    return PydanticTask(**asdict(task))


def _bad_request(error: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail=error.message)


def _jsonable_errors(errors: t.Sequence[t.Any]) -> list[dict[str, t.Any]]:
    """Keep only the JSON-safe parts of pydantic error entries."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in errors
    ]


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("TIMEBLOCK_SERVICE_PORT", "8004")))
