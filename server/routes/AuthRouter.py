from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from database.DB import get_db
from services.IdentityService import IdentityService
from services.TaskService import TaskService
from models.models import TaskStatus
from .dependencies import get_current_user, get_identity_service, get_task_service, to_http_error

router = APIRouter()


# Pydantic models
class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class ProfileUpdate(BaseModel):
    name: str


@router.post('/login')
async def login(credentials: LoginRequest, request: Request,
                identity: IdentityService = Depends(get_identity_service)):
    """Sign in with email and password; the user is kept in the session cookie"""
    try:
        user = await identity.sign_in(credentials.email, credentials.password)
        request.session.clear()
        request.session['user'] = user
        return JSONResponse(content={"message": "Signed in", "user": user})
    except Exception as e:
        raise to_http_error(e, "signing in")


@router.post('/password-reset')
async def request_password_reset(payload: PasswordResetRequest,
                                 identity: IdentityService = Depends(get_identity_service)):
    """Send a password reset email. Answers the same whether or not the account exists."""
    try:
        await identity.request_password_reset(payload.email)
        return JSONResponse(content={"message": "If an account exists for this email, a reset link has been sent."})
    except Exception as e:
        raise to_http_error(e, "sending password reset")


@router.post('/password-reset/confirm')
async def confirm_password_reset(payload: PasswordResetConfirm,
                                 identity: IdentityService = Depends(get_identity_service)):
    try:
        await identity.reset_password(payload.token, payload.new_password)
        return JSONResponse(content={"message": "Password has been reset"})
    except Exception as e:
        raise to_http_error(e, "resetting password")


@router.get('/health')
async def health_check():
    """Simple health check endpoint"""
    return JSONResponse(content={"status": "healthy", "message": "Server is running"})


@router.get('/user/profile')
async def user_profile(user: dict = Depends(get_current_user), db=Depends(get_db),
                       tasks: TaskService = Depends(get_task_service)):
    """The signed-in user with their volunteer profile, task counts and events taken part in"""
    try:
        volunteer = await db.find_one("volunteers", {"volunteer_id": user["uid"]})
        if not volunteer:
            raise HTTPException(status_code=404, detail="Could not find user profile.")

        my_tasks = await tasks.list_tasks(volunteer_id=user["uid"])
        event_ids = list(dict.fromkeys(task["event_id"] for task in my_tasks))
        events = []
        if event_ids:
            result = await db.find_many("events", {"event_id": {"$in": event_ids}}, sort=[("date", -1)])
            events = result["data"]

        return JSONResponse(content={
            "user": user,
            "volunteer": volunteer,
            "task_count": len(my_tasks),
            "completed_task_count": sum(1 for t in my_tasks if t.get("status") == TaskStatus.COMPLETED.value),
            "events": events
        })
    except Exception as e:
        raise to_http_error(e, "fetching profile")


@router.put('/user/profile')
async def update_profile(payload: ProfileUpdate, request: Request, user: dict = Depends(get_current_user),
                         identity: IdentityService = Depends(get_identity_service)):
    """Change the display name of the signed-in user"""
    try:
        volunteer = await identity.update_display_name(user["uid"], payload.name)
        user = dict(user, name=volunteer["name"])
        request.session['user'] = user
        return JSONResponse(content={"message": "Profile updated", "user": user, "volunteer": volunteer})
    except Exception as e:
        raise to_http_error(e, "updating profile")


@router.post('/logout')
async def logout(request: Request):
    request.session.pop('user', None)
    return JSONResponse(content={"message": "Signed out"})
