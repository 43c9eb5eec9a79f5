from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from database.DB import get_db
from models.models import Announcement
from .dependencies import get_current_user, require_admin, to_http_error

router = APIRouter()


class AnnouncementCreate(BaseModel):
    title: str
    content: str


@router.post('')
async def create_announcement(payload: AnnouncementCreate, admin_user: dict = Depends(require_admin),
                              db=Depends(get_db)):
    """Post an announcement signed with the admin's name (Admin only)"""
    try:
        if not payload.title.strip() or not payload.content.strip():
            raise HTTPException(status_code=400, detail="Please fill out all fields.")

        announcement = Announcement(
            title=payload.title.strip(),
            content=payload.content.strip(),
            author=admin_user.get("name") or "Unknown",
        )
        result = await db.add("announcements", announcement.to_document())
        if result["status"] != 200:
            raise HTTPException(status_code=500, detail="Failed to post announcement")

        return JSONResponse(status_code=201, content={
            "message": "New announcement has been posted.",
            "announcement": result["data"]
        })

    except Exception as e:
        raise to_http_error(e, "creating announcement")


@router.get('')
async def get_announcements(user: dict = Depends(get_current_user), db=Depends(get_db)):
    try:
        result = await db.find_many("announcements", sort=[("date", -1)])
        return JSONResponse(content={"announcements": result["data"]})
    except Exception as e:
        raise to_http_error(e, "fetching announcements")


@router.delete('/{announcement_id}')
async def delete_announcement(announcement_id: str, admin_user: dict = Depends(require_admin), db=Depends(get_db)):
    """Delete an announcement (Admin only)"""
    try:
        result = await db.delete("announcements", {"announcement_id": announcement_id})
        if result["deleted_count"] == 0:
            raise HTTPException(status_code=404, detail="Announcement not found")

        return JSONResponse(content={"message": "Announcement has been removed."})

    except Exception as e:
        raise to_http_error(e, "deleting announcement")
