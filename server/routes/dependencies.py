"""
Shared dependency functions for FastAPI routers.
Eliminates code duplication across multiple router files.
"""
import logging

from fastapi import Request, HTTPException, Depends

from database.DB import get_db
from models.models import Role
from services.IdentityService import IdentityService, session_user
from services.RemappingService import RemappingService
from services.TaskService import TaskService
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)


async def get_current_user(request: Request, db=Depends(get_db)):
    """
    Dependency to get the currently authenticated user from session.
    The volunteer record is re-read so removed users lose access and
    role changes apply immediately.
    Raises HTTPException if user is not authenticated.
    """
    user = request.session.get('user')
    if not user:
        raise HTTPException(status_code=401, detail="User not authenticated")

    volunteer = await db.find_one("volunteers", {"volunteer_id": user.get("uid")})
    if not volunteer:
        request.session.pop('user', None)
        raise HTTPException(status_code=401, detail="User not authenticated")

    current = session_user(volunteer)
    if current != user:
        request.session['user'] = current
    return current


async def require_admin(user: dict = Depends(get_current_user)):
    """
    Dependency to require admin role.
    Raises HTTPException if user is not an admin.
    """
    if user.get("role") != Role.ADMIN.value:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def is_admin(user: dict) -> bool:
    return user.get("role") == Role.ADMIN.value


def get_task_service(request: Request, db=Depends(get_db)):
    return TaskService(db, rng=getattr(request.app.state, "rng", None))


def get_remapping_service(tasks: TaskService = Depends(get_task_service), db=Depends(get_db)):
    return RemappingService(db, tasks)


def get_identity_service(request: Request, db=Depends(get_db)):
    return IdentityService(
        db,
        notifier=getattr(request.app.state, "notifier", None),
        hasher=getattr(request.app.state, "hasher", None),
    )


def to_http_error(error: Exception, action: str) -> HTTPException:
    """Translate a failure inside a route into the HTTPException to raise."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, ServiceError):
        return HTTPException(status_code=error.status_code, detail=error.message)
    logger.exception("Error %s", action)
    return HTTPException(status_code=500, detail=f"Error {action}: {str(error)}")
