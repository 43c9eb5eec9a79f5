from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import Literal
from pydantic import BaseModel

from services.RemappingService import RemappingService
from .dependencies import get_current_user, get_remapping_service, to_http_error

router = APIRouter()


# Pydantic models
class RemapRequestCreate(BaseModel):
    task_id: str
    to_volunteer_id: str = ""
    reason: str = ""


class RemapDecision(BaseModel):
    status: Literal["Accepted", "Rejected"]


@router.post('')
async def submit_request(payload: RemapRequestCreate, user: dict = Depends(get_current_user),
                         remapping: RemappingService = Depends(get_remapping_service)):
    """Ask for one of your tasks to be handed to another volunteer"""
    try:
        request = await remapping.submit_request(payload.task_id, user["uid"], payload.to_volunteer_id, payload.reason)
        return JSONResponse(status_code=201, content={
            "message": "Your task remapping request has been sent for approval.",
            "request": request
        })
    except Exception as e:
        raise to_http_error(e, "submitting request")


@router.get('')
async def get_requests(user: dict = Depends(get_current_user),
                       remapping: RemappingService = Depends(get_remapping_service)):
    """All requests for admins, requests addressed to the caller otherwise"""
    try:
        requests = await remapping.list_requests(user)
        return JSONResponse(content={"requests": requests})
    except Exception as e:
        raise to_http_error(e, "fetching requests")


@router.post('/{request_id}/decision')
async def decide_request(request_id: str, decision: RemapDecision, user: dict = Depends(get_current_user),
                         remapping: RemappingService = Depends(get_remapping_service)):
    """Accept or reject a pending request (receiving volunteer or Admin)"""
    try:
        request, task = await remapping.decide_request(request_id, decision.status, user)
        return JSONResponse(content={
            "message": f"Request {decision.status.lower()}.",
            "request": request,
            "task": task
        })
    except Exception as e:
        raise to_http_error(e, "updating request")
