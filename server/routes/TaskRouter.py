from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import List, Optional
from pydantic import BaseModel, Field
import datetime as dt

from models.models import TaskType
from services.TaskService import TaskService
from .dependencies import get_current_user, require_admin, get_task_service, to_http_error

router = APIRouter()


# Pydantic models
class TaskCreate(BaseModel):
    event_id: str
    name: str
    deadline: dt.date
    description: str = ""
    type: TaskType = TaskType.INDIVIDUAL
    assigned_volunteer_ids: List[str] = Field(default_factory=list)


class TaskAssignment(BaseModel):
    volunteer_ids: List[str] = Field(default_factory=list)


class NoteCreate(BaseModel):
    volunteer_id: str
    note: str


@router.post('')
async def create_task(task_data: TaskCreate, admin_user: dict = Depends(require_admin),
                      tasks: TaskService = Depends(get_task_service)):
    """Create a task for an event (Admin only)"""
    try:
        task = await tasks.create_task(
            event_id=task_data.event_id,
            name=task_data.name,
            deadline=task_data.deadline.isoformat(),
            description=task_data.description,
            task_type=task_data.type.value,
            assigned_volunteer_ids=task_data.assigned_volunteer_ids,
        )
        return JSONResponse(status_code=201, content={"message": "New task added.", "task": task})
    except Exception as e:
        raise to_http_error(e, "creating task")


@router.get('')
async def get_tasks(event_id: Optional[str] = Query(None), user: dict = Depends(get_current_user),
                    tasks: TaskService = Depends(get_task_service)):
    """List tasks, optionally only those of one event"""
    try:
        result = await tasks.list_tasks(event_id=event_id, with_notes=bool(event_id))
        return JSONResponse(content={"tasks": result})
    except Exception as e:
        raise to_http_error(e, "fetching tasks")


@router.get('/mine')
async def get_my_tasks(user: dict = Depends(get_current_user), tasks: TaskService = Depends(get_task_service)):
    """Tasks currently assigned to the signed-in volunteer"""
    try:
        result = await tasks.list_tasks(volunteer_id=user["uid"])
        return JSONResponse(content={"tasks": result, "count": len(result)})
    except Exception as e:
        raise to_http_error(e, "fetching tasks")


@router.get('/{task_id}')
async def get_task(task_id: str, user: dict = Depends(get_current_user),
                   tasks: TaskService = Depends(get_task_service)):
    try:
        task = await tasks.get_task(task_id)
        return JSONResponse(content={"task": task})
    except Exception as e:
        raise to_http_error(e, "fetching task")


@router.put('/{task_id}/assignees')
async def assign_task(task_id: str, assignment: TaskAssignment, admin_user: dict = Depends(require_admin),
                      tasks: TaskService = Depends(get_task_service)):
    """Overwrite the assignee set of a task (Admin only)"""
    try:
        task = await tasks.assign_volunteers(task_id, assignment.volunteer_ids)
        return JSONResponse(content={"message": "Task assignment updated.", "task": task})
    except Exception as e:
        raise to_http_error(e, "assigning task")


@router.post('/{task_id}/complete')
async def complete_task(task_id: str, user: dict = Depends(get_current_user),
                        tasks: TaskService = Depends(get_task_service)):
    """Mark an individual task as complete"""
    try:
        task, praise = await tasks.mark_complete(task_id, user)
        return JSONResponse(content={"message": "Task marked as complete.", "task": task, "praise": praise})
    except Exception as e:
        raise to_http_error(e, "completing task")


@router.post('/{task_id}/present')
async def mark_present(task_id: str, user: dict = Depends(get_current_user),
                       tasks: TaskService = Depends(get_task_service)):
    """Confirm presence on a team task; the last confirmation completes it"""
    try:
        task, completed = await tasks.mark_present(task_id, user["uid"])
        message = "Team task completed." if completed else "Presence confirmed."
        return JSONResponse(content={"message": message, "task": task, "completed": completed})
    except Exception as e:
        raise to_http_error(e, "marking presence")


@router.post('/{task_id}/notes')
async def add_contribution_note(task_id: str, note_data: NoteCreate, admin_user: dict = Depends(require_admin),
                                tasks: TaskService = Depends(get_task_service)):
    """Record a volunteer's contribution to a task (Admin only)"""
    try:
        note = await tasks.add_note(task_id, note_data.volunteer_id, note_data.note)
        return JSONResponse(status_code=201, content={"message": "Contribution note added.", "note": note})
    except Exception as e:
        raise to_http_error(e, "adding contribution note")


@router.delete('/{task_id}')
async def delete_task(task_id: str, admin_user: dict = Depends(require_admin),
                      tasks: TaskService = Depends(get_task_service)):
    """Delete a task together with its contribution notes (Admin only)"""
    try:
        removed = await tasks.delete_task(task_id)
        return JSONResponse(content={"message": "Task deleted successfully", "notes_deleted": removed})
    except Exception as e:
        raise to_http_error(e, "deleting task")
