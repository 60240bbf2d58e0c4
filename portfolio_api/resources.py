"""Catalog resources: skills, projects, courses, certifications.

All four share one service parameterized by a `ResourceSpec`; the subclasses only add
the per-resource read endpoints (project filters and stats, course years,
certification stats).
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from portfolio_api.db import parse_object_id, public_doc
from portfolio_api.errors import not_found
from portfolio_api.models import CERTIFICATION, COURSE, PROJECT, SKILL, ResourceSpec
from portfolio_api.schemas import validate
from portfolio_api.util.sanitize import literal_eq, sanitize_update
from portfolio_api.util.time import utcnow


class ResourceService:
    def __init__(self, database: Any, spec: ResourceSpec) -> None:
        self.spec = spec
        self._coll = database[spec.collection]

    async def _find(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        cursor = self._coll.find(query).sort(list(self.spec.sort))
        return [public_doc(d) for d in await cursor.to_list()]

    def _active_query(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        query: Dict[str, Any] = {"active": True}
        for field in self.spec.filters:
            value = filters.get(field)
            if value in (None, ""):
                continue
            cond = literal_eq(value)
            if cond is not None:
                query[field] = cond
        return query

    async def list(self, **filters: Any) -> List[Dict[str, Any]]:
        """Active documents in display order, optionally filtered by the resource's filter fields."""
        return await self._find(self._active_query(filters))

    async def list_all(self) -> List[Dict[str, Any]]:
        """Every document, inactive included (admin listing)."""
        return await self._find({})

    async def get(self, doc_id: str) -> Dict[str, Any]:
        oid = parse_object_id(doc_id)
        doc = await self._coll.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise not_found(self.spec.label, doc_id)
        return public_doc(doc)

    async def create(self, payload: Any) -> Dict[str, Any]:
        data = validate(self.spec.create_model, payload).model_dump(by_alias=True, exclude_none=True)
        now = utcnow()
        data["createdAt"] = now
        data["updatedAt"] = now
        result = await self._coll.insert_one(data)
        data["_id"] = result.inserted_id
        return public_doc(data)

    async def update(self, doc_id: str, payload: Any) -> Dict[str, Any]:
        oid = parse_object_id(doc_id)
        if oid is None:
            raise not_found(self.spec.label, doc_id)

        clean = sanitize_update(
            payload,
            allowed=self.spec.allowed_fields,
            string_lists=self.spec.string_lists,
        )
        changes = validate(self.spec.update_model, clean).model_dump(by_alias=True, exclude_unset=True)

        changes["updatedAt"] = utcnow()
        doc = await self._coll.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise not_found(self.spec.label, doc_id)
        return public_doc(doc)

    async def remove(self, doc_id: str) -> None:
        oid = parse_object_id(doc_id)
        deleted = 0
        if oid is not None:
            result = await self._coll.delete_one({"_id": oid})
            deleted = result.deleted_count
        if not deleted:
            raise not_found(self.spec.label, doc_id)


class SkillService(ResourceService):
    def __init__(self, database: Any) -> None:
        super().__init__(database, SKILL)


class ProjectService(ResourceService):
    def __init__(self, database: Any) -> None:
        super().__init__(database, PROJECT)

    async def list(  # type: ignore[override]
        self,
        category: Any = None,
        featured: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        # "all" is what the front end sends for the unfiltered tab.
        query = self._active_query({"category": None if category == "all" else category})
        if isinstance(featured, bool):
            query["featured"] = featured
        return await self._find(query)

    async def stats(self) -> Dict[str, Any]:
        docs = await self._coll.find({"active": True}).to_list()
        by_category = Counter(str(d.get("category")) for d in docs)
        return {"total": len(docs), "byCategory": dict(by_category)}


class CourseService(ResourceService):
    def __init__(self, database: Any) -> None:
        super().__init__(database, COURSE)

    async def years(self) -> List[str]:
        """Distinct years of active courses, newest first.

        Inactive courses are left out so the public year tabs never lead to an
        empty listing.
        """
        years = await self._coll.distinct("year", {"active": True})
        return sorted((str(y) for y in years if y), reverse=True)


class CertificationService(ResourceService):
    def __init__(self, database: Any) -> None:
        super().__init__(database, CERTIFICATION)

    async def stats(self) -> Dict[str, Any]:
        docs = await self._coll.find({"active": True}).to_list()
        by_issuer = Counter(str(d.get("issuer")) for d in docs)
        return {"total": len(docs), "byIssuer": dict(by_issuer)}
