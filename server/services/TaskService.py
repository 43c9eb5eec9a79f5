import logging
from typing import Dict, Iterable, List, Optional, Tuple

from config.config import ORGANIZATION_NAME
from helpers.Praise import pick_praise
from models.models import ContributionNote, Task, TaskStatus, TaskType
from .exceptions import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

TASKS = "tasks"
NOTES = "contribution_notes"


def unique_ids(ids: Iterable[str]) -> List[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen = []
    for volunteer_id in ids or []:
        if volunteer_id and volunteer_id not in seen:
            seen.append(volunteer_id)
    return seen


def reset_completion(assignees: Iterable[str]) -> Dict[str, bool]:
    return {volunteer_id: False for volunteer_id in assignees}


def all_present(assignees: List[str], completion: Optional[Dict[str, bool]]) -> bool:
    """
    True when every current assignee has confirmed presence.
    Flags for volunteers no longer assigned are ignored; missing flags count as absent.
    """
    if not assignees:
        return False
    completion = completion or {}
    return all(completion.get(volunteer_id) is True for volunteer_id in assignees)


def event_progress(tasks: List[dict]) -> float:
    if not tasks:
        return 0
    completed = sum(1 for task in tasks if task.get("status") == TaskStatus.COMPLETED.value)
    return completed / len(tasks) * 100


def version_filter(document: dict, id_field: str) -> dict:
    """Filter matching the document only while it still has the version we read."""
    query = {id_field: document[id_field]}
    if "version" in document:
        query["version"] = document["version"]
    else:
        query["version"] = {"$exists": False}
    return query


class TaskService:
    """Task store operations and the completion / assignment state transitions."""

    def __init__(self, db, org_name: str = ORGANIZATION_NAME, rng=None):
        self.db = db
        self.org_name = org_name
        self.rng = rng

    async def create_task(self, event_id: str, name: str, deadline: str, description: str = "",
                          task_type: str = TaskType.INDIVIDUAL.value,
                          assigned_volunteer_ids: Optional[List[str]] = None) -> dict:
        if not name or not name.strip() or not deadline:
            raise InvalidRequestError("Task name and deadline are required")

        event = await self.db.find_one("events", {"event_id": event_id})
        if not event:
            raise NotFoundError("Event not found")

        assignees = unique_ids(assigned_volunteer_ids)
        task = Task(
            event_id=event_id,
            name=name.strip(),
            description=description or "",
            type=task_type,
            deadline=deadline,
            assigned_volunteer_ids=assignees,
            completion=reset_completion(assignees) if task_type == TaskType.TEAM.value else None,
        )

        result = await self.db.add(TASKS, task.to_document())
        if result["status"] != 200:
            raise ConflictError("Failed to create task")

        created = result["data"]
        created["contribution_notes"] = []
        logger.info("Created %s task %s for event %s", task_type, created["task_id"], event_id)
        return created

    async def get_task(self, task_id: str, with_notes: bool = True) -> dict:
        task = await self.db.find_one(TASKS, {"task_id": task_id})
        if not task:
            raise NotFoundError("Task not found")
        if with_notes:
            await self.attach_notes([task])
        return task

    async def list_tasks(self, event_id: Optional[str] = None, volunteer_id: Optional[str] = None,
                         with_notes: bool = False) -> List[dict]:
        query = {}
        if event_id:
            query["event_id"] = event_id
        if volunteer_id:
            # matches array membership
            query["assigned_volunteer_ids"] = volunteer_id

        result = await self.db.find_many(TASKS, query, sort=[("deadline", 1)])
        tasks = result["data"]
        if with_notes:
            await self.attach_notes(tasks)
        return tasks

    async def summarize_events(self, events: List[dict]) -> List[dict]:
        """Annotate events with task progress and the volunteers assigned across their tasks."""
        if not events:
            return events
        event_ids = [event["event_id"] for event in events]
        result = await self.db.find_many(TASKS, {"event_id": {"$in": event_ids}})

        by_event = {event_id: [] for event_id in event_ids}
        for task in result["data"]:
            by_event.setdefault(task["event_id"], []).append(task)

        for event in events:
            event_tasks = by_event.get(event["event_id"], [])
            event["task_count"] = len(event_tasks)
            event["completed_task_count"] = sum(
                1 for task in event_tasks if task.get("status") == TaskStatus.COMPLETED.value
            )
            event["progress"] = event_progress(event_tasks)
            event["assigned_volunteer_ids"] = unique_ids(
                volunteer_id for task in event_tasks for volunteer_id in task.get("assigned_volunteer_ids", [])
            )
        return events

    async def attach_notes(self, tasks: List[dict]) -> List[dict]:
        if not tasks:
            return tasks
        task_ids = [task["task_id"] for task in tasks]
        result = await self.db.find_many(NOTES, {"task_id": {"$in": task_ids}}, sort=[("created_at", 1)])

        by_task = {task_id: [] for task_id in task_ids}
        for note in result["data"]:
            by_task.setdefault(note["task_id"], []).append(note)
        for task in tasks:
            task["contribution_notes"] = by_task.get(task["task_id"], [])
        return tasks

    async def write(self, task: dict, changes: dict, session=None) -> dict:
        """Apply changes only if nobody else wrote the task since we read it."""
        changes = dict(changes)
        changes["version"] = task.get("version", 0) + 1

        result = await self.db.update(TASKS, version_filter(task, "task_id"), {"$set": changes}, session=session)
        if result["matched_count"] == 0:
            raise ConflictError("Task was modified by someone else; reload and try again")

        updated = dict(task)
        updated.update(changes)
        return updated

    async def assign_volunteers(self, task_id: str, volunteer_ids: List[str]) -> dict:
        task = await self.get_task(task_id, with_notes=False)
        assignees = unique_ids(volunteer_ids)

        changes = {"assigned_volunteer_ids": assignees}
        if task.get("type") == TaskType.TEAM.value:
            # earlier presence confirmations are discarded
            changes["completion"] = reset_completion(assignees)

        updated = await self.write(task, changes)
        logger.info("Task %s reassigned to %d volunteers", task_id, len(assignees))
        return updated

    async def mark_complete(self, task_id: str, volunteer: dict) -> Tuple[dict, Optional[str]]:
        """
        Individual task completion. Returns the task and a praise message,
        which is None when the task was already completed.
        """
        task = await self.get_task(task_id, with_notes=False)
        if task.get("type") == TaskType.TEAM.value:
            raise InvalidRequestError("Team tasks are completed when every assignee marks present")
        if volunteer["uid"] not in task.get("assigned_volunteer_ids", []):
            raise PermissionDeniedError("Only an assigned volunteer can complete this task")

        if task.get("status") == TaskStatus.COMPLETED.value:
            return task, None

        updated = await self.write(task, {"status": TaskStatus.COMPLETED.value})
        logger.info("Task %s completed by %s", task_id, volunteer["uid"])
        return updated, pick_praise(volunteer.get("name"), self.org_name, self.rng)

    async def mark_present(self, task_id: str, volunteer_id: str) -> Tuple[dict, bool]:
        """
        Team task presence. Returns the task and whether this call moved it
        to Completed.
        """
        task = await self.get_task(task_id, with_notes=False)
        if task.get("type") != TaskType.TEAM.value:
            raise InvalidRequestError("Only team tasks track presence")

        assignees = task.get("assigned_volunteer_ids", [])
        if volunteer_id not in assignees:
            raise PermissionDeniedError("Only an assigned volunteer can mark presence")

        completion = dict(task.get("completion") or {})
        was_completed = task.get("status") == TaskStatus.COMPLETED.value
        if completion.get(volunteer_id) is True and (was_completed or not all_present(assignees, completion)):
            return task, False

        completion[volunteer_id] = True
        changes = {"completion": completion}
        completed_now = not was_completed and all_present(assignees, completion)
        if completed_now:
            changes["status"] = TaskStatus.COMPLETED.value

        updated = await self.write(task, changes)
        if completed_now:
            logger.info("Team task %s completed: all %d assignees present", task_id, len(assignees))
        return updated, completed_now

    async def add_note(self, task_id: str, volunteer_id: str, note: str) -> dict:
        if not volunteer_id or not note or not note.strip():
            raise InvalidRequestError("Please select a volunteer and enter a note")

        await self.get_task(task_id, with_notes=False)
        entry = ContributionNote(task_id=task_id, volunteer_id=volunteer_id, note=note.strip())
        result = await self.db.add(NOTES, entry.to_document())
        if result["status"] != 200:
            raise ConflictError("Failed to add note")
        return result["data"]

    async def delete_task(self, task_id: str) -> int:
        """Delete the task and all of its notes as one unit. Returns the number of notes removed."""
        await self.get_task(task_id, with_notes=False)

        async with self.db.transaction() as session:
            notes = await self.db.delete_many(NOTES, {"task_id": task_id}, session=session)
            result = await self.db.delete(TASKS, {"task_id": task_id}, session=session)
            if result["deleted_count"] == 0:
                raise NotFoundError("Task not found")

        logger.info("Deleted task %s and %d contribution notes", task_id, notes["deleted_count"])
        return notes["deleted_count"]
