from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import datetime as dt

from database.DB import get_db
from models.models import RequestStatus
from services.RemappingService import REQUESTS, RemappingService
from services.TaskService import TaskService
from .dependencies import get_current_user, get_remapping_service, get_task_service, to_http_error

router = APIRouter()

RECENT_REQUESTS = 5


@router.get('/dashboard')
async def dashboard(user: dict = Depends(get_current_user), db=Depends(get_db),
                    tasks: TaskService = Depends(get_task_service),
                    remapping: RemappingService = Depends(get_remapping_service)):
    """Progress of current and upcoming events plus the latest transfer requests"""
    try:
        today = dt.date.today().isoformat()
        result = await db.find_many("events", {"date": {"$gte": today}}, sort=[("date", 1)])
        events = await tasks.summarize_events(result["data"])

        return JSONResponse(content={
            "events": events,
            "recent_requests": await remapping.list_requests(user, limit=RECENT_REQUESTS),
            "volunteer_count": await db.count("volunteers"),
            "task_count": await db.count("tasks"),
            "pending_request_count": await db.count(REQUESTS, {"status": RequestStatus.PENDING.value}),
        })
    except Exception as e:
        raise to_http_error(e, "fetching dashboard")
