import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from models.models import RemappingRequest, RequestStatus, Role, TaskType
from .TaskService import TASKS, TaskService, version_filter
from .exceptions import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError, ServiceError

logger = logging.getLogger(__name__)

REQUESTS = "remappingRequests"


def remap_assignees(assignees: List[str], from_id: str, to_id: str) -> List[str]:
    """Replace from_id with to_id; to_id is not added twice."""
    remapped = [volunteer_id for volunteer_id in assignees if volunteer_id != from_id]
    if to_id not in remapped:
        remapped.append(to_id)
    return remapped


def remap_completion(completion: Optional[Dict[str, bool]], from_id: str, to_id: str) -> Dict[str, bool]:
    remapped = {k: v for k, v in (completion or {}).items() if k != from_id}
    remapped.setdefault(to_id, False)
    return remapped


class RemappingService:
    """Requests to hand a task assignment over to another volunteer."""

    def __init__(self, db, tasks: Optional[TaskService] = None):
        self.db = db
        self.tasks = tasks or TaskService(db)

    async def submit_request(self, task_id: str, from_volunteer_id: str, to_volunteer_id: str, reason: str) -> dict:
        if not task_id or not to_volunteer_id or not reason or not reason.strip():
            raise InvalidRequestError("Please fill out all fields")
        if to_volunteer_id == from_volunteer_id:
            raise InvalidRequestError("Cannot remap a task to yourself")

        task = await self.tasks.get_task(task_id, with_notes=False)
        if from_volunteer_id not in task.get("assigned_volunteer_ids", []):
            raise PermissionDeniedError("Only an assigned volunteer can request remapping")

        request = RemappingRequest(
            task_id=task_id,
            from_volunteer_id=from_volunteer_id,
            to_volunteer_id=to_volunteer_id,
            reason=reason.strip(),
        )
        result = await self.db.add(REQUESTS, request.to_document())
        if result["status"] != 200:
            raise ServiceError("Failed to submit request")

        logger.info("Remapping request %s: task %s from %s to %s",
                    request.request_id, task_id, from_volunteer_id, to_volunteer_id)
        return result["data"]

    async def get_request(self, request_id: str) -> dict:
        request = await self.db.find_one(REQUESTS, {"request_id": request_id})
        if not request:
            raise NotFoundError("Request not found")
        return request

    async def list_requests(self, user: dict, limit: Optional[int] = None) -> List[dict]:
        """Admins see every request, volunteers the ones addressed to them."""
        query = {}
        if user.get("role") != Role.ADMIN.value:
            query["to_volunteer_id"] = user["uid"]
        result = await self.db.find_many(REQUESTS, query, sort=[("created_at", -1)], limit=limit)
        return result["data"]

    async def decide_request(self, request_id: str, status: str, actor: dict) -> Tuple[dict, Optional[dict]]:
        """
        Accept or reject a pending request. Returns the request and, when
        accepted, the updated task.
        """
        if status not in (RequestStatus.ACCEPTED.value, RequestStatus.REJECTED.value):
            raise InvalidRequestError("Status must be Accepted or Rejected")

        request = await self.get_request(request_id)
        if actor.get("role") != Role.ADMIN.value and actor["uid"] != request["to_volunteer_id"]:
            raise PermissionDeniedError("Only the receiving volunteer or an admin can decide this request")
        if request.get("status") != RequestStatus.PENDING.value:
            raise ConflictError(f"Request already {request.get('status', '').lower()}")

        decision = {
            "status": status,
            "decided_by": actor["uid"],
            "decided_at": datetime.utcnow(),
            "version": request.get("version", 0) + 1,
        }

        updated_task = None
        async with self.db.transaction() as session:
            result = await self.db.update(REQUESTS, version_filter(request, "request_id"),
                                          {"$set": decision}, session=session)
            if result["matched_count"] == 0:
                raise ConflictError("Request was modified by someone else; reload and try again")

            if status == RequestStatus.ACCEPTED.value:
                task = await self.db.find_one(TASKS, {"task_id": request["task_id"]}, session=session)
                if not task:
                    raise NotFoundError("Task not found")

                changes = {
                    "assigned_volunteer_ids": remap_assignees(
                        task.get("assigned_volunteer_ids", []),
                        request["from_volunteer_id"],
                        request["to_volunteer_id"],
                    )
                }
                if task.get("type") == TaskType.TEAM.value:
                    changes["completion"] = remap_completion(
                        task.get("completion"), request["from_volunteer_id"], request["to_volunteer_id"]
                    )
                updated_task = await self.tasks.write(task, changes, session=session)

        request = dict(request)
        request.update(decision)
        request["decided_at"] = decision["decided_at"].isoformat()
        logger.info("Remapping request %s %s by %s", request_id, status.lower(), actor["uid"])
        return request, updated_task
