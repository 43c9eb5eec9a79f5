from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


class Role(str, Enum):
    ADMIN = "Admin"
    VOLUNTEER = "Volunteer"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskType(str, Enum):
    INDIVIDUAL = "Individual"
    TEAM = "Team"


class EventStatus(str, Enum):
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    POSTPONED = "Postponed"


class RequestStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class MeetingType(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class Document(BaseModel):
    """Base for stored documents: enums are kept as their plain string values."""
    model_config = ConfigDict(use_enum_values=True)

    def to_document(self) -> dict:
        return self.model_dump()


class Volunteer(Document):
    volunteer_id: str
    name: str
    email: str
    avatar: str = ""
    role: Role = Role.VOLUNTEER
    team: Optional[str] = None


class Account(Document):
    uid: str
    email: str
    password_hash: str
    display_name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Event(Document):
    event_id: str = Field(default_factory=new_id)
    name: str
    description: str
    date: str
    status: EventStatus = EventStatus.UPCOMING
    status_timestamp: datetime = Field(default_factory=datetime.utcnow)


class Department(Document):
    department_id: str = Field(default_factory=new_id)
    event_id: str
    name: str
    volunteer_ids: List[str] = Field(default_factory=list)


class Task(Document):
    task_id: str = Field(default_factory=new_id)
    event_id: str
    name: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    type: TaskType = TaskType.INDIVIDUAL
    deadline: str
    assigned_volunteer_ids: List[str] = Field(default_factory=list)
    completion: Optional[Dict[str, bool]] = None
    version: int = 0


class ContributionNote(Document):
    note_id: str = Field(default_factory=new_id)
    task_id: str
    volunteer_id: str
    note: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class RemappingRequest(Document):
    request_id: str = Field(default_factory=new_id)
    task_id: str
    from_volunteer_id: str
    to_volunteer_id: str
    reason: str
    status: RequestStatus = RequestStatus.PENDING
    version: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None


class Meeting(Document):
    meeting_id: str = Field(default_factory=new_id)
    title: str
    date: datetime
    time: str
    location: str
    type: MeetingType = MeetingType.ONLINE
    attendees: List[str] = Field(default_factory=lambda: ["all"])


class Announcement(Document):
    announcement_id: str = Field(default_factory=new_id)
    title: str
    content: str
    author: str
    date: datetime = Field(default_factory=datetime.utcnow)
