from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import Optional
from pydantic import BaseModel

from database.DB import get_db
from models.models import Role
from services.IdentityService import IdentityService
from .dependencies import get_current_user, require_admin, get_identity_service, to_http_error

router = APIRouter()


# Pydantic models
class VolunteerCreate(BaseModel):
    name: str
    email: str
    password: str
    role: Role = Role.VOLUNTEER
    team: Optional[str] = None


class VolunteerUpdate(BaseModel):
    role: Optional[Role] = None
    team: Optional[str] = None


@router.post('')
async def add_volunteer(volunteer_data: VolunteerCreate, admin_user: dict = Depends(require_admin),
                        identity: IdentityService = Depends(get_identity_service)):
    """Add a new volunteer and create their sign-in account (Admin only)"""
    try:
        volunteer = await identity.create_account(
            volunteer_data.name,
            volunteer_data.email,
            volunteer_data.password,
            role=volunteer_data.role.value,
            team=volunteer_data.team,
        )
        return JSONResponse(status_code=201, content={"message": "New volunteer has been added.", "volunteer": volunteer})
    except Exception as e:
        raise to_http_error(e, "adding volunteer")


@router.get('')
async def get_volunteers(user: dict = Depends(get_current_user), db=Depends(get_db)):
    """Get all volunteers"""
    try:
        result = await db.find_many("volunteers", sort=[("name", 1)])
        volunteers = result["data"] if result["status"] == 200 else []

        return JSONResponse(content={"volunteers": volunteers})

    except Exception as e:
        raise to_http_error(e, "fetching volunteers")


@router.get('/teams')
async def get_teams(user: dict = Depends(get_current_user), db=Depends(get_db)):
    """Distinct team labels across volunteers, sorted"""
    try:
        result = await db.find_many("volunteers", {"team": {"$ne": None}})
        teams = sorted({v["team"].strip() for v in result["data"] if v.get("team") and v["team"].strip()},
                       key=str.lower)
        return JSONResponse(content={"teams": teams})
    except Exception as e:
        raise to_http_error(e, "fetching teams")


@router.get('/{volunteer_id}')
async def get_volunteer(volunteer_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    """Get a specific volunteer"""
    try:
        volunteer = await db.find_one("volunteers", {"volunteer_id": volunteer_id})
        if not volunteer:
            raise HTTPException(status_code=404, detail="Volunteer not found")

        return JSONResponse(content={"volunteer": volunteer})

    except Exception as e:
        raise to_http_error(e, "fetching volunteer")


@router.put('/{volunteer_id}')
async def update_volunteer(volunteer_id: str, update: VolunteerUpdate, admin_user: dict = Depends(require_admin),
                           db=Depends(get_db)):
    """Change a volunteer's role or team (Admin only)"""
    try:
        update_data = {}
        if update.role is not None:
            update_data["role"] = update.role.value
        if update.team is not None:
            update_data["team"] = update.team.strip() or None

        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")

        result = await db.update("volunteers", {"volunteer_id": volunteer_id}, {"$set": update_data})
        if result["matched_count"] == 0:
            raise HTTPException(status_code=404, detail="Volunteer not found")

        volunteer = await db.find_one("volunteers", {"volunteer_id": volunteer_id})
        return JSONResponse(content={"message": "Volunteer updated successfully", "volunteer": volunteer})

    except Exception as e:
        raise to_http_error(e, "updating volunteer")


@router.delete('/{volunteer_id}')
async def remove_volunteer(volunteer_id: str, admin_user: dict = Depends(require_admin),
                           identity: IdentityService = Depends(get_identity_service)):
    """Remove a volunteer and their account (Admin only)"""
    try:
        if volunteer_id == admin_user["uid"]:
            raise HTTPException(status_code=400, detail="You cannot remove your own account")

        await identity.delete_account(volunteer_id)
        return JSONResponse(content={"message": "Volunteer removed successfully"})

    except Exception as e:
        raise to_http_error(e, "removing volunteer")
