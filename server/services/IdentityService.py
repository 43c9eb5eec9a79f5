import hashlib
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

from jose import jwt, JWTError
from pymongo.errors import DuplicateKeyError

from config.config import (
    AVATAR_BASE_URL, BCRYPT_ROUNDS, FRONTEND_URL, ORGANIZATION_NAME,
    RESET_TOKEN_EXPIRE_MINUTES, SECRET_KEY, SESSION_SECRET_KEY,
)
from helpers.PasswordHasher import PasswordHasher
from models.models import Account, RequestStatus, Role, Volunteer
from .NotificationService import LogOnlyNotificationService
from .RemappingService import REQUESTS
from .TaskService import TASKS
from .exceptions import AuthenticationError, ConflictError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

ACCOUNTS = "accounts"
VOLUNTEERS = "volunteers"

ALGORITHM = "HS256"
RESET_PURPOSE = "password_reset"


def session_user(volunteer: dict) -> dict:
    """The subset of a volunteer profile kept in the session cookie."""
    return {
        "uid": volunteer["volunteer_id"],
        "name": volunteer.get("name"),
        "email": volunteer.get("email"),
        "role": volunteer.get("role", Role.VOLUNTEER.value),
    }


def _fingerprint(password_hash: str) -> str:
    # ties a reset token to the password it was issued for
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


class IdentityService:
    """E-mail/password accounts backing the volunteer profiles."""

    def __init__(self, db, notifier=None, hasher: Optional[PasswordHasher] = None,
                 secret_key: Optional[str] = None):
        self.db = db
        self.notifier = notifier or LogOnlyNotificationService()
        self.hasher = hasher or PasswordHasher(BCRYPT_ROUNDS)
        self.secret_key = secret_key or SECRET_KEY or SESSION_SECRET_KEY

    async def sign_in(self, email: str, password: str) -> dict:
        email = (email or "").strip().lower()
        account = await self.db.find_one(ACCOUNTS, {"email": email})
        if not account or not self.hasher.verify(password, account.get("password_hash", "")):
            raise AuthenticationError("Invalid email or password")

        volunteer = await self.db.find_one(VOLUNTEERS, {"volunteer_id": account["uid"]})
        if not volunteer:
            raise AuthenticationError("No volunteer profile for this account")

        logger.info("User %s signed in", account["uid"])
        return session_user(volunteer)

    async def create_account(self, name: str, email: str, password: str,
                             role: str = Role.VOLUNTEER.value, team: Optional[str] = None) -> dict:
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email or not password or not password.strip():
            raise InvalidRequestError("Name, email, and password are required")

        if await self.db.find_one(ACCOUNTS, {"email": email}):
            raise ConflictError("An account with this email already exists")

        uid = uuid.uuid4().hex
        account = Account(uid=uid, email=email, password_hash=self.hasher.hash(password), display_name=name)
        volunteer = Volunteer(
            volunteer_id=uid,
            name=name,
            email=email,
            avatar=f"{AVATAR_BASE_URL}{quote(email)}",
            role=role,
            team=team.strip() if team and team.strip() else None,
        )

        try:
            async with self.db.transaction() as session:
                await self.db.add(ACCOUNTS, account.to_document(), session=session)
                result = await self.db.add(VOLUNTEERS, volunteer.to_document(), session=session)
        except DuplicateKeyError:
            raise ConflictError("An account with this email already exists")

        logger.info("Created %s account %s", role, uid)
        return result["data"]

    async def ensure_indexes(self) -> None:
        await self.db.create_index(ACCOUNTS, "email", unique=True)

    async def ensure_admin(self, email: str, password: str, name: str) -> Optional[dict]:
        """Create the configured first admin unless an account already exists."""
        if not email or not password:
            return None
        if await self.db.find_one(ACCOUNTS, {"email": email.strip().lower()}):
            return None
        try:
            return await self.create_account(name, email, password, role=Role.ADMIN.value)
        except ConflictError:
            # another worker created it first
            return None

    def create_reset_token(self, account: dict) -> str:
        payload = {
            "sub": account["uid"],
            "purpose": RESET_PURPOSE,
            "fp": _fingerprint(account["password_hash"]),
            "exp": datetime.utcnow() + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    async def request_password_reset(self, email: str) -> None:
        """E-mail a reset link if the account exists. Silent otherwise."""
        email = (email or "").strip().lower()
        account = await self.db.find_one(ACCOUNTS, {"email": email})
        if not account:
            logger.info("Password reset requested for unknown email")
            return

        token = self.create_reset_token(account)
        body = (
            f"Hello {account.get('display_name', '')},\n\n"
            f"Use the link below to choose a new password for your {ORGANIZATION_NAME} account. "
            f"It expires in {RESET_TOKEN_EXPIRE_MINUTES} minutes.\n\n"
            f"{FRONTEND_URL}/reset-password?token={token}\n"
        )
        await self.notifier.send([email], f"{ORGANIZATION_NAME} password reset", body)

    async def reset_password(self, token: str, new_password: str) -> None:
        if not new_password or not new_password.strip():
            raise InvalidRequestError("New password is required")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            raise AuthenticationError("Invalid or expired reset token")
        if payload.get("purpose") != RESET_PURPOSE:
            raise AuthenticationError("Invalid or expired reset token")

        account = await self.db.find_one(ACCOUNTS, {"uid": payload.get("sub")})
        if not account or _fingerprint(account["password_hash"]) != payload.get("fp"):
            raise AuthenticationError("Invalid or expired reset token")

        await self.db.update(ACCOUNTS, {"uid": account["uid"]},
                             {"$set": {"password_hash": self.hasher.hash(new_password)}})
        logger.info("Password reset for account %s", account["uid"])

    async def update_display_name(self, uid: str, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            raise InvalidRequestError("Display name is required")

        volunteer = await self.db.find_one(VOLUNTEERS, {"volunteer_id": uid})
        if not volunteer:
            raise NotFoundError("Volunteer not found")

        async with self.db.transaction() as session:
            await self.db.update(ACCOUNTS, {"uid": uid}, {"$set": {"display_name": name}}, session=session)
            await self.db.update(VOLUNTEERS, {"volunteer_id": uid}, {"$set": {"name": name}}, session=session)

        volunteer["name"] = name
        return volunteer

    async def delete_account(self, uid: str) -> None:
        """
        Remove the volunteer profile and account, take the volunteer off every
        task they were assigned to and drop their pending remapping requests.
        """
        async with self.db.transaction() as session:
            result = await self.db.delete(VOLUNTEERS, {"volunteer_id": uid}, session=session)
            if result["deleted_count"] == 0:
                raise NotFoundError("Volunteer not found")
            await self.db.delete(ACCOUNTS, {"uid": uid}, session=session)

            tasks = await self.db.update_many(
                TASKS,
                {"assigned_volunteer_ids": uid},
                {
                    "$pull": {"assigned_volunteer_ids": uid},
                    "$unset": {f"completion.{uid}": ""},
                    "$inc": {"version": 1},
                },
                session=session,
            )
            pending = RequestStatus.PENDING.value
            sent = await self.db.delete_many(REQUESTS, {"from_volunteer_id": uid, "status": pending}, session=session)
            received = await self.db.delete_many(REQUESTS, {"to_volunteer_id": uid, "status": pending}, session=session)

        logger.info("Deleted volunteer %s; unassigned from %d tasks, dropped %d pending requests",
                    uid, tasks["modified_count"], sent["deleted_count"] + received["deleted_count"])
