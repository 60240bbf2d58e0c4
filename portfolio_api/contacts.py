from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Set

from pymongo import DESCENDING, ReturnDocument

from portfolio_api import db
from portfolio_api.db import parse_object_id, public_doc
from portfolio_api.errors import not_found
from portfolio_api.schemas import ContactCreate, validate
from portfolio_api.util.time import utcnow

log = logging.getLogger("portfolio.contacts")

LABEL = "Contact"


class ContactNotifier(Protocol):
    async def send_contact_notification(self, contact: Dict[str, Any]) -> bool: ...


class ContactService:
    def __init__(self, database: Any, notifier: Optional[ContactNotifier] = None) -> None:
        self._coll = database[db.CONTACTS]
        self._notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    async def create(self, payload: Any) -> Dict[str, Any]:
        """Store a new message and schedule the owner notification.

        The notification runs as a background task; this returns as soon as the
        message is stored.
        """
        data = validate(ContactCreate, payload).model_dump(by_alias=True)
        now = utcnow()
        data.update({"read": False, "readAt": None, "createdAt": now, "updatedAt": now})

        result = await self._coll.insert_one(data)
        data["_id"] = result.inserted_id
        contact = public_doc(data)

        if self._notifier is not None:
            task = asyncio.get_running_loop().create_task(self._notify(dict(contact)))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return contact

    async def _notify(self, contact: Dict[str, Any]) -> None:
        try:
            await self._notifier.send_contact_notification(contact)  # type: ignore[union-attr]
        except Exception:
            log.exception("Contact notification failed (contact=%s)", contact.get("_id"))

    async def drain(self) -> None:
        """Wait for notifications still in flight (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def list(self) -> List[Dict[str, Any]]:
        """All messages, newest first."""
        docs = await self._coll.find({}).sort([("createdAt", DESCENDING)]).to_list()
        return [public_doc(d) for d in docs]

    async def get(self, contact_id: str) -> Dict[str, Any]:
        oid = parse_object_id(contact_id)
        doc = await self._coll.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise not_found(LABEL, contact_id)
        return public_doc(doc)

    async def _set(self, contact_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        oid = parse_object_id(contact_id)
        if oid is None:
            raise not_found(LABEL, contact_id)
        changes["updatedAt"] = utcnow()
        doc = await self._coll.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise not_found(LABEL, contact_id)
        return public_doc(doc)

    async def mark_read(self, contact_id: str) -> Dict[str, Any]:
        return await self._set(contact_id, {"read": True, "readAt": utcnow()})

    async def toggle_read(self, contact_id: str) -> Dict[str, Any]:
        current = await self.get(contact_id)
        now_read = not bool(current.get("read"))
        return await self._set(contact_id, {"read": now_read, "readAt": utcnow() if now_read else None})

    async def delete(self, contact_id: str) -> None:
        oid = parse_object_id(contact_id)
        deleted = 0
        if oid is not None:
            result = await self._coll.delete_one({"_id": oid})
            deleted = result.deleted_count
        if not deleted:
            raise not_found(LABEL, contact_id)
