import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId

from portfolio_api.contacts import ContactService
from portfolio_api.errors import NotFound, ValidationFailed

from conftest import FakeDatabase

MESSAGE = {
    "name": "Jane Doe",
    "email": "Jane@Example.COM",
    "subject": "Hello there",
    "message": "I would like to talk about a project.",
}


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def notifier():
    n = Mock()
    n.send_contact_notification = AsyncMock(return_value=True)
    return n


class TestContactService:
    def test_create_stores_unread_and_notifies(self, db, notifier):
        svc = ContactService(db, notifier)

        async def scenario():
            contact = await svc.create(MESSAGE)
            await svc.drain()
            return contact

        contact = run(scenario())
        assert contact["read"] is False
        assert contact["readAt"] is None
        assert contact["email"] == "jane@example.com"
        notifier.send_contact_notification.assert_awaited_once()
        sent = notifier.send_contact_notification.await_args.args[0]
        assert sent["_id"] == contact["_id"]

    def test_notifier_failure_does_not_fail_create(self, db, notifier, caplog):
        notifier.send_contact_notification.side_effect = RuntimeError("smtp down")
        svc = ContactService(db, notifier)

        async def scenario():
            contact = await svc.create(MESSAGE)
            await svc.drain()
            return contact

        contact = run(scenario())
        assert contact["_id"]
        assert len(db["contacts"].docs) == 1
        assert "Contact notification failed" in caplog.text

    def test_invalid_message_is_not_stored_or_sent(self, db, notifier):
        svc = ContactService(db, notifier)
        with pytest.raises(ValidationFailed) as ei:
            run(svc.create({**MESSAGE, "name": "Jo", "message": "short"}))
        assert any(m.startswith("name:") for m in ei.value.message)
        assert any(m.startswith("message:") for m in ei.value.message)
        assert db["contacts"].docs == []
        notifier.send_contact_notification.assert_not_called()

    def test_bad_email(self, db):
        with pytest.raises(ValidationFailed):
            run(ContactService(db).create({**MESSAGE, "email": "not-an-email"}))

    def test_mark_read(self, db):
        svc = ContactService(db)
        contact = run(svc.create(MESSAGE))
        read = run(svc.mark_read(contact["_id"]))
        assert read["read"] is True
        assert read["readAt"] is not None

    def test_toggle_twice_restores_state(self, db):
        svc = ContactService(db)
        contact = run(svc.create(MESSAGE))

        once = run(svc.toggle_read(contact["_id"]))
        assert once["read"] is True
        assert once["readAt"] is not None

        twice = run(svc.toggle_read(contact["_id"]))
        assert twice["read"] is False
        assert twice["readAt"] is None

    def test_list_newest_first(self, db):
        svc = ContactService(db)
        first = run(svc.create(MESSAGE))
        second = run(svc.create({**MESSAGE, "subject": "Second one"}))
        # Force distinct timestamps.
        db["contacts"].docs[0]["createdAt"] = db["contacts"].docs[1]["createdAt"].replace(year=2000)
        assert [c["_id"] for c in run(svc.list())] == [second["_id"], first["_id"]]

    @pytest.mark.parametrize("contact_id", [str(ObjectId()), "zzz"])
    def test_missing(self, db, contact_id):
        svc = ContactService(db)
        with pytest.raises(NotFound, match=f"Contact with ID {contact_id} not found"):
            run(svc.get(contact_id))
        with pytest.raises(NotFound):
            run(svc.toggle_read(contact_id))
        with pytest.raises(NotFound):
            run(svc.delete(contact_id))

    def test_delete(self, db):
        svc = ContactService(db)
        contact = run(svc.create(MESSAGE))
        run(svc.delete(contact["_id"]))
        assert db["contacts"].docs == []
