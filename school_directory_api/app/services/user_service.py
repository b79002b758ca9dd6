"""
Business logic for users.

Handles registration, authentication and the admin-only user
management surface.  The first account ever registered becomes an
admin so a fresh deployment can be administered without touching the
database.
"""

import logging
import sqlite3
from typing import Any, Dict, Mapping, Optional, Set

from ..core.exceptions import ConflictError, NotFoundError
from ..core.filters import Condition, Operator
from ..core.security import hash_password, verify_password
from ..core.store import COURSES, REVIEWS, SCHOOLS, USERS, Store
from ..schemas.user import UserCreate, UserRegister, UserUpdate
from .aggregate_service import AggregateService
from .query_compiler import advanced_results


logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts."""

    @classmethod
    async def register(cls, data: UserRegister) -> Dict[str, Any]:
        """Self-registration.  The very first user is promoted to admin."""
        role = data.role
        if Store().count(USERS) == 0:
            role = "admin"
        return await cls._insert(data.name, data.email, data.password, role)

    @classmethod
    async def create_user(cls, data: UserCreate) -> Dict[str, Any]:
        return await cls._insert(data.name, data.email, data.password, data.role)

    @classmethod
    async def _insert(cls, name: str, email: str, password: str, role: str) -> Dict[str, Any]:
        logger.info("Registering user %s as %s", email, role)
        try:
            return Store().insert(
                USERS,
                {"name": name, "email": email.lower(), "password": hash_password(password), "role": role},
            )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"Email {email} is already registered") from exc

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the user if the credentials match, otherwise ``None``."""
        user = Store().find_one(
            USERS, [Condition("email", Operator.EQ, email.lower())], include_hidden=True
        )
        if not user or not verify_password(password, user["password"]):
            logger.info("Failed login for %s", email)
            return None
        user.pop("password", None)
        return user

    @classmethod
    async def list_users(cls, params: Mapping[str, Any]) -> Dict[str, Any]:
        return await advanced_results(USERS, params)

    @classmethod
    async def get_user(cls, user_id: int) -> Dict[str, Any]:
        user = Store().get(USERS, user_id)
        if not user:
            raise NotFoundError(f"No user with the id of {user_id}")
        return user

    @classmethod
    async def update_user(cls, user_id: int, data: UserUpdate) -> Dict[str, Any]:
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "password" in values:
            values["password"] = hash_password(values["password"])
        if "email" in values:
            values["email"] = values["email"].lower()
        try:
            user = Store().update(USERS, user_id, values)
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"Email {values.get('email')} is already registered") from exc
        if user is None:
            raise NotFoundError(f"No user with the id of {user_id}")
        return user

    @classmethod
    async def delete_user(cls, user_id: int) -> None:
        """Delete a user together with everything they own.

        Schools owned by the user go away entirely.  Courses and reviews
        the user left on other schools are removed by the cascade, so
        those schools' averages are recomputed afterwards.
        """
        store = Store()
        await cls.get_user(user_id)
        owned = Condition("user_id", Operator.EQ, user_id)
        own_schools = {s["id"] for s in store.find(SCHOOLS, [owned], projection=("id",))}
        cost_schools: Set[int] = {
            c["school_id"] for c in store.find(COURSES, [owned], projection=("school_id",))
        } - own_schools
        rating_schools: Set[int] = {
            r["school_id"] for r in store.find(REVIEWS, [owned], projection=("school_id",))
        } - own_schools
        store.delete(USERS, user_id)
        logger.info("Deleted user %s", user_id)
        for school_id in sorted(cost_schools):
            await AggregateService.recompute_cost(school_id, store)
        for school_id in sorted(rating_schools):
            await AggregateService.recompute_rating(school_id, store)
