"""
Business logic for schools.

Schools are published by ``publisher`` users (an ordinary publisher may
own one school, admins any number).  The address is geocoded on create
and whenever it changes; a geocoder outage is logged and the school is
stored without coordinates (an address change clears the old ones).
Deleting a school removes its courses and reviews through the foreign-key cascade.
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.config import settings
from ..core.exceptions import ConflictError, GeocodingError, NotFoundError
from ..core.filters import Condition, Operator
from ..core.geocoder import LOCATION_FIELDS, distance_miles, get_geocoder
from ..core.security import ensure_owner, is_admin
from ..core.store import SCHOOL_COURSES, SCHOOLS, Store
from ..schemas.school import SchoolCreate, SchoolUpdate
from .query_compiler import advanced_results


logger = logging.getLogger(__name__)


def _locate(address: str) -> Dict[str, Any]:
    """Geocoded location fields for ``address`` or an empty dict."""
    geocoder = get_geocoder()
    if geocoder is None:
        return {}
    try:
        return geocoder.geocode(address).as_fields()
    except GeocodingError as exc:
        logger.warning("Storing school without coordinates: %s", exc)
        return {}


class SchoolService:
    """Service for publishing and searching schools."""

    @classmethod
    async def list_schools(cls, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Paginated school list with each school's courses attached."""
        return await advanced_results(SCHOOLS, params, include=SCHOOL_COURSES)

    @classmethod
    async def get_school(cls, school_id: int) -> Dict[str, Any]:
        school = Store().get(SCHOOLS, school_id)
        if not school:
            raise NotFoundError(f"School not found with id of {school_id}")
        return school

    @classmethod
    async def create_school(cls, data: SchoolCreate, current_user: dict) -> Dict[str, Any]:
        """Publish a new school owned by the current user."""
        store = Store()
        user_id = current_user.get("user_id")
        if not is_admin(current_user):
            existing = store.find_one(SCHOOLS, [Condition("user_id", Operator.EQ, user_id)])
            if existing:
                raise ValueError(f"The user with ID {user_id} has already published a school")
        values = data.model_dump()
        values.update(_locate(data.address))
        values["user_id"] = user_id
        try:
            school = store.insert(SCHOOLS, values)
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"A school named {data.name!r} already exists") from exc
        logger.info("User %s published school %s", user_id, school["id"])
        return school

    @classmethod
    async def update_school(cls, school_id: int, data: SchoolUpdate, current_user: dict) -> Dict[str, Any]:
        store = Store()
        school = await cls.get_school(school_id)
        ensure_owner(school, current_user, "update this school")
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "address" in values and values["address"] != school["address"]:
            # A failed lookup clears the previous location.
            values.update(_locate(values["address"]) or dict.fromkeys(LOCATION_FIELDS))
        try:
            updated = store.update(SCHOOLS, school_id, values)
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"A school named {values.get('name')!r} already exists") from exc
        if updated is None:
            raise NotFoundError(f"School not found with id of {school_id}")
        logger.info("User %s updated school %s", current_user.get("user_id"), school_id)
        return updated

    @classmethod
    async def delete_school(cls, school_id: int, current_user: dict) -> None:
        school = await cls.get_school(school_id)
        ensure_owner(school, current_user, "delete this school")
        Store().delete(SCHOOLS, school_id)
        logger.info("User %s deleted school %s", current_user.get("user_id"), school_id)

    @classmethod
    async def schools_in_radius(cls, zipcode: str, distance: float) -> List[Dict[str, Any]]:
        """Schools within ``distance`` miles of ``zipcode``, nearest first."""
        geocoder = get_geocoder()
        if geocoder is None:
            raise GeocodingError("Geocoding is disabled")
        origin = geocoder.geocode(zipcode)
        found = []
        for school in Store().find(SCHOOLS):
            if school["latitude"] is None or school["longitude"] is None:
                continue
            miles = distance_miles(origin.latitude, origin.longitude, school["latitude"], school["longitude"])
            if miles <= distance:
                found.append((miles, school))
        found.sort(key=lambda pair: (pair[0], pair[1]["id"]))
        return [school for _, school in found]

    @classmethod
    async def upload_photo(
        cls,
        school_id: int,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
        current_user: dict,
    ) -> str:
        """Store an image for the school and return its file name."""
        school = await cls.get_school(school_id)
        ensure_owner(school, current_user, "update this school")
        if not content:
            raise ValueError("Please upload a file")
        if not (content_type or "").startswith("image"):
            raise ValueError("Please upload an image file")
        if len(content) > settings.max_file_upload:
            raise ValueError(f"Please upload an image less than {settings.max_file_upload} bytes")
        ext = os.path.splitext(filename or "")[1]
        name = f"photo_{school_id}{ext}"
        upload_dir = Path(settings.file_upload_path)
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / name).write_bytes(content)
        Store().update(SCHOOLS, school_id, {"photo": name})
        logger.info("Stored photo %s for school %s", name, school_id)
        return name
