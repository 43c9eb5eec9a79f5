from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
import datetime as dt

from database.DB import get_db
from models.models import Meeting, MeetingType
from .dependencies import get_current_user, require_admin, is_admin, to_http_error

router = APIRouter()

ALL = "all"
TEAM_PREFIX = "team:"


# Pydantic models
class MeetingCreate(BaseModel):
    title: str
    date: dt.date
    time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    location: str
    type: MeetingType = MeetingType.ONLINE
    audience_mode: Literal["all", "teams", "specific"] = "all"
    teams: List[str] = Field(default_factory=list)
    attendees: List[str] = Field(default_factory=list)


def build_attendees(meeting: MeetingCreate) -> List[str]:
    """Attendee tokens: ["all"], ["team:<name>", ...] or volunteer ids."""
    if meeting.audience_mode == "all":
        return [ALL]
    if meeting.audience_mode == "teams":
        teams = [t.strip() for t in meeting.teams if t.strip()]
        if not teams:
            raise HTTPException(status_code=400, detail="Choose at least one team or switch to All.")
        return [f"{TEAM_PREFIX}{t}" for t in teams]
    if not meeting.attendees:
        raise HTTPException(status_code=400, detail="Pick at least one volunteer, or use All/Teams.")
    return list(dict.fromkeys(meeting.attendees))


def normalize_attendees(attendees) -> List[str]:
    if isinstance(attendees, list):
        return attendees
    if isinstance(attendees, str):
        return [attendees]
    return [ALL]


def is_visible(attendees: List[str], uid: str, team: Optional[str]) -> bool:
    if ALL in attendees or uid in attendees:
        return True
    if team:
        token = f"{TEAM_PREFIX}{team}".lower()
        return any(isinstance(a, str) and a.lower() == token for a in attendees)
    return False


@router.post('')
async def create_meeting(meeting_data: MeetingCreate, admin_user: dict = Depends(require_admin), db=Depends(get_db)):
    """Schedule a meeting for everyone, some teams or specific volunteers (Admin only)"""
    try:
        if not meeting_data.title.strip() or not meeting_data.location.strip():
            raise HTTPException(status_code=400, detail="Please fill out all required fields.")

        meeting = Meeting(
            title=meeting_data.title.strip(),
            date=dt.datetime.combine(meeting_data.date, dt.time.min),
            time=meeting_data.time,
            location=meeting_data.location.strip(),
            type=meeting_data.type,
            attendees=build_attendees(meeting_data),
        )
        result = await db.add("meetings", meeting.to_document())
        if result["status"] != 200:
            raise HTTPException(status_code=500, detail="Failed to create meeting")

        return JSONResponse(status_code=201, content={"message": "Meeting scheduled.", "meeting": result["data"]})

    except Exception as e:
        raise to_http_error(e, "creating meeting")


@router.get('')
async def get_meetings(user: dict = Depends(get_current_user), db=Depends(get_db)):
    """Meetings newest first; non-admins only see the ones addressed to them"""
    try:
        result = await db.find_many("meetings", sort=[("date", -1)])
        meetings = result["data"]
        for meeting in meetings:
            meeting["attendees"] = normalize_attendees(meeting.get("attendees"))

        if not is_admin(user):
            volunteer = await db.find_one("volunteers", {"volunteer_id": user["uid"]})
            team = volunteer.get("team") if volunteer else None
            meetings = [m for m in meetings if is_visible(m["attendees"], user["uid"], team)]

        return JSONResponse(content={"meetings": meetings})

    except Exception as e:
        raise to_http_error(e, "fetching meetings")
