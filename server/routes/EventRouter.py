import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
import datetime as dt

from database.DB import get_db
from models.models import Department, Event, EventStatus
from services.TaskService import TaskService, event_progress
from .dependencies import get_current_user, require_admin, get_task_service, to_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


# Pydantic models
class EventCreate(BaseModel):
    name: str
    description: str
    date: dt.date


class EventStatusUpdate(BaseModel):
    status: EventStatus
    date: Optional[dt.date] = None


class DepartmentCreate(BaseModel):
    name: str
    volunteer_ids: List[str] = Field(default_factory=list)


@router.post('')
async def create_event(event_data: EventCreate, admin_user: dict = Depends(require_admin), db=Depends(get_db)):
    """Create a new event (Admin only)"""
    try:
        if not event_data.name.strip() or not event_data.description.strip():
            raise HTTPException(status_code=400, detail="Please fill out all fields.")

        event = Event(
            name=event_data.name.strip(),
            description=event_data.description.strip(),
            date=event_data.date.isoformat(),
        )
        result = await db.add("events", event.to_document())
        if result["status"] == 200:
            logger.info("Event %s created by %s", event.event_id, admin_user["uid"])
            return JSONResponse(status_code=201, content={"message": "New event has been created.", "event": result["data"]})
        else:
            raise HTTPException(status_code=500, detail="Failed to create event")

    except Exception as e:
        raise to_http_error(e, "creating event")


@router.get('')
async def get_events(scope: Literal["upcoming", "past"] = Query("upcoming"), user: dict = Depends(get_current_user),
                     db=Depends(get_db), tasks: TaskService = Depends(get_task_service)):
    """Upcoming (today onwards) or past events, newest date first, with task progress"""
    if db is None:
        raise HTTPException(status_code=503, detail="Database connection not available. Please check MongoDB configuration.")

    try:
        today = dt.date.today().isoformat()
        query = {"date": {"$gte": today}} if scope == "upcoming" else {"date": {"$lt": today}}
        result = await db.find_many("events", query, sort=[("date", -1)])
        events = await tasks.summarize_events(result["data"])
        return JSONResponse(content={"events": events})

    except Exception as e:
        raise to_http_error(e, "fetching events")


@router.get('/{event_id}')
async def get_event(event_id: str, user: dict = Depends(get_current_user), db=Depends(get_db),
                    tasks: TaskService = Depends(get_task_service)):
    """Event with its departments, tasks and contribution notes"""
    try:
        event = await db.find_one("events", {"event_id": event_id})
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        departments = await db.find_many("departments", {"event_id": event_id})
        event_tasks = await tasks.list_tasks(event_id=event_id, with_notes=True)

        event["departments"] = departments["data"]
        event["progress"] = event_progress(event_tasks)
        return JSONResponse(content={"event": event, "tasks": event_tasks})

    except Exception as e:
        raise to_http_error(e, "fetching event")


@router.put('/{event_id}/status')
async def update_event_status(event_id: str, update: EventStatusUpdate, admin_user: dict = Depends(require_admin),
                              db=Depends(get_db)):
    """Mark an event Upcoming or Completed, or postpone it to a new date (Admin only)"""
    try:
        update_data = {"status": update.status.value, "status_timestamp": dt.datetime.utcnow()}
        if update.status == EventStatus.POSTPONED:
            if update.date is None:
                raise HTTPException(status_code=400, detail="A new date is required to postpone an event")
            update_data["date"] = update.date.isoformat()

        result = await db.update("events", {"event_id": event_id}, {"$set": update_data})
        if result["matched_count"] == 0:
            raise HTTPException(status_code=404, detail="Event not found")

        updated_event = await db.find_one("events", {"event_id": event_id})
        return JSONResponse(content={"message": f"Event marked as {update.status.value}.", "event": updated_event})

    except Exception as e:
        raise to_http_error(e, "updating status")


@router.post('/{event_id}/departments')
async def add_department(event_id: str, payload: DepartmentCreate, admin_user: dict = Depends(require_admin),
                         db=Depends(get_db)):
    """Create a department of volunteers within an event (Admin only)"""
    try:
        if not payload.name.strip():
            raise HTTPException(status_code=400, detail="Department name is required")

        event = await db.find_one("events", {"event_id": event_id})
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        department = Department(
            event_id=event_id,
            name=payload.name.strip(),
            volunteer_ids=list(dict.fromkeys(payload.volunteer_ids)),
        )
        result = await db.add("departments", department.to_document())
        if result["status"] != 200:
            raise HTTPException(status_code=500, detail="Failed to create department")

        return JSONResponse(status_code=201, content={
            "message": f'Department "{department.name}" created.',
            "department": result["data"]
        })

    except Exception as e:
        raise to_http_error(e, "adding department")


@router.get('/{event_id}/departments')
async def get_departments(event_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    try:
        result = await db.find_many("departments", {"event_id": event_id})
        return JSONResponse(content={"departments": result["data"]})
    except Exception as e:
        raise to_http_error(e, "fetching departments")
