from datetime import datetime, timedelta, timezone

import pytest

from tadbeer.domain.enums import NotificationType, TicketStatus, UserRole
from tadbeer.domain.errors import (
    CommentNotFoundError, PermissionDeniedError, TicketNotFoundError, ValidationError,
)
from tadbeer.repositories.comment_repo import CommentRepository
from tadbeer.repositories.notification_repo import NotificationRepository
from tadbeer.services.ticket_service import TicketService
from tadbeer.domain.models import Comment


def _new_ticket(service, actor, **extra):
    data = {"title": "VPN drops", "description": "VPN disconnects every hour", "category": "Technical"}
    data.update(extra)
    return service.create_ticket(actor, data)


def _notifications(db, **query):
    return list(db["notifications"].find(query))


def test_create_defaults_and_owner(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()

    ticket = _new_ticket(service, actor_of(agent))

    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority.value == "medium"
    assert ticket.created_by == agent.user_id
    assert service.ticket_repo.get_ticket(ticket.ticket_id) is not None


def test_plain_user_cannot_create(make_user, actor_of):
    user = make_user(role=UserRole.USER)
    with pytest.raises(PermissionDeniedError):
        _new_ticket(TicketService(), actor_of(user))


def test_create_with_assignee_notifies_exactly_once(make_user, actor_of, mongo_db):
    admin = make_user(role=UserRole.ADMIN)
    assignee = make_user()

    ticket = _new_ticket(TicketService(), actor_of(admin), assignee=assignee.user_id)

    rows = _notifications(mongo_db)
    assert len(rows) == 1
    assert rows[0]["user_id"] == assignee.user_id
    assert rows[0]["type"] == NotificationType.TICKET_ASSIGNED
    assert rows[0]["link"] == f"/tickets/{ticket.ticket_id}"


def test_create_rejects_unknown_assignee(make_user, actor_of, mongo_db):
    admin = make_user(role=UserRole.ADMIN)
    with pytest.raises(ValidationError):
        _new_ticket(TicketService(), actor_of(admin), assignee="USR-missing")
    assert mongo_db["tickets"].count_documents({}) == 0


def test_notification_failure_does_not_fail_create(make_user, actor_of, monkeypatch):
    admin = make_user(role=UserRole.ADMIN)
    assignee = make_user()

    def boom(self, notification):
        raise RuntimeError("notifications collection unavailable")

    monkeypatch.setattr(NotificationRepository, "create_notification", boom)

    service = TicketService()
    ticket = _new_ticket(service, actor_of(admin), assignee=assignee.user_id)
    assert service.ticket_repo.get_ticket(ticket.ticket_id).assignee == assignee.user_id


def test_comment_recipients_exclude_commenter(make_user, actor_of, mongo_db):
    agent = make_user(role=UserRole.AGENT)
    assignee = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent), assignee=assignee.user_id)
    mongo_db["notifications"].delete_many({})

    service.add_comment(actor_of(assignee), ticket.ticket_id, "Looking into it")

    rows = _notifications(mongo_db)
    assert [r["user_id"] for r in rows] == [agent.user_id]
    assert rows[0]["type"] == NotificationType.COMMENT_ADDED


def test_comment_recipients_are_deduplicated(make_user, actor_of, mongo_db):
    agent = make_user(role=UserRole.AGENT)
    manager = make_user(role=UserRole.MANAGER)
    service = TicketService()
    # Creator is also the assignee
    ticket = _new_ticket(service, actor_of(agent), assignee=agent.user_id)
    mongo_db["notifications"].delete_many({})

    service.add_comment(actor_of(manager), ticket.ticket_id, "Any update?")

    rows = _notifications(mongo_db, type=NotificationType.COMMENT_ADDED)
    assert [r["user_id"] for r in rows] == [agent.user_id]


def test_comment_by_sole_participant_notifies_nobody(make_user, actor_of, mongo_db):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent))

    service.add_comment(actor_of(agent), ticket.ticket_id, "Note to self")

    assert _notifications(mongo_db) == []


def test_user_listing_is_narrowed(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    me = make_user()
    other = make_user()
    service = TicketService()

    mine = _new_ticket(service, actor_of(agent), assignee=me.user_id)
    _new_ticket(service, actor_of(agent), assignee=other.user_id)
    _new_ticket(service, actor_of(agent))

    visible = service.list_tickets(actor_of(me), {})
    assert [t.ticket_id for t in visible] == [mine.ticket_id]
    assert all(me.user_id in (t.created_by, t.assignee) for t in visible)

    assert len(service.list_tickets(actor_of(agent), {})) == 3


def test_list_filters_and_order(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    first = _new_ticket(service, actor_of(agent), priority="high")
    second = _new_ticket(service, actor_of(agent), priority="low")
    # Make ordering independent of clock resolution
    service.ticket_repo._tickets.update_one(
        {"ticket_id": first.ticket_id},
        {"$set": {"created_at": datetime.now(timezone.utc) - timedelta(days=1)}}
    )

    listed = service.list_tickets(actor_of(agent), {})
    assert [t.ticket_id for t in listed] == [second.ticket_id, first.ticket_id]

    high = service.list_tickets(actor_of(agent), {"priority": "high"})
    assert [t.ticket_id for t in high] == [first.ticket_id]


def test_update_writes_only_provided_fields(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent), tags=["vpn"])

    updated = service.update_ticket(actor_of(agent), ticket.ticket_id, {"priority": "urgent"})

    assert updated.priority.value == "urgent"
    assert updated.title == ticket.title
    assert updated.tags == ["vpn"]
    assert updated.created_by == agent.user_id


def test_update_ignores_created_by(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent))

    updated = service.update_ticket(actor_of(agent), ticket.ticket_id, {"created_by": "USR-other", "title": "New"})

    assert updated.created_by == agent.user_id
    assert service.ticket_repo.get_ticket(ticket.ticket_id).created_by == agent.user_id


def test_reassign_notifies_new_assignee_only(make_user, actor_of, mongo_db):
    admin = make_user(role=UserRole.ADMIN)
    u1 = make_user()
    u2 = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(admin), assignee=u1.user_id)
    mongo_db["notifications"].delete_many({})

    service.update_ticket(actor_of(admin), ticket.ticket_id, {"title": "Renamed ticket"})
    assert _notifications(mongo_db) == []

    service.update_ticket(actor_of(admin), ticket.ticket_id, {"assignee": u2.user_id})
    rows = _notifications(mongo_db)
    assert [(r["user_id"], r["type"]) for r in rows] == [(u2.user_id, NotificationType.TICKET_ASSIGNED)]

    # Same assignee again: no delta, no notification
    service.update_ticket(actor_of(admin), ticket.ticket_id, {"assignee": u2.user_id})
    assert len(_notifications(mongo_db)) == 1


def test_empty_assignee_unassigns_silently(make_user, actor_of, mongo_db):
    admin = make_user(role=UserRole.ADMIN)
    u1 = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(admin), assignee=u1.user_id)
    mongo_db["notifications"].delete_many({})

    updated = service.update_ticket(actor_of(admin), ticket.ticket_id, {"assignee": ""})

    assert updated.assignee is None
    assert _notifications(mongo_db) == []


def test_racing_reassignments_notify_exactly_once(make_user, actor_of, mongo_db, monkeypatch):
    admin = make_user(role=UserRole.ADMIN)
    u1, u2, u3 = make_user(), make_user(), make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(admin), assignee=u1.user_id)
    mongo_db["notifications"].delete_many({})

    # Both requests read the ticket while it was still assigned to u1
    observed = service.ticket_repo.get_ticket_or_raise(ticket.ticket_id)
    monkeypatch.setattr(service.ticket_repo, "get_ticket_or_raise", lambda ticket_id: observed)

    service.update_ticket(actor_of(admin), ticket.ticket_id, {"assignee": u2.user_id})
    service.update_ticket(actor_of(admin), ticket.ticket_id, {"assignee": u3.user_id})

    assert service.ticket_repo.get_ticket(ticket.ticket_id).assignee == u3.user_id
    rows = _notifications(mongo_db, type=NotificationType.TICKET_ASSIGNED)
    assert len(rows) == 1
    assert rows[0]["user_id"] in (u2.user_id, u3.user_id)


def test_status_change_any_to_any_and_idempotent(make_user, actor_of, mongo_db):
    agent = make_user(role=UserRole.AGENT)
    assignee = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent), assignee=assignee.user_id)
    before = len(_notifications(mongo_db))

    closed = service.change_status(actor_of(agent), ticket.ticket_id, TicketStatus.CLOSED)
    assert closed.status == TicketStatus.CLOSED

    again = service.change_status(actor_of(agent), ticket.ticket_id, TicketStatus.CLOSED)
    assert again.status == closed.status
    assert again.title == closed.title

    reopened = service.change_status(actor_of(agent), ticket.ticket_id, TicketStatus.OPEN)
    assert reopened.status == TicketStatus.OPEN
    assert len(_notifications(mongo_db)) == before


def test_stranger_is_denied_everywhere(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    owner = make_user()
    stranger = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent), assignee=owner.user_id)

    with pytest.raises(PermissionDeniedError):
        service.get_ticket_detail(actor_of(stranger), ticket.ticket_id)
    with pytest.raises(PermissionDeniedError):
        service.update_ticket(actor_of(stranger), ticket.ticket_id, {"title": "Hijacked"})
    with pytest.raises(PermissionDeniedError):
        service.change_status(actor_of(stranger), ticket.ticket_id, TicketStatus.CLOSED)
    with pytest.raises(PermissionDeniedError):
        service.add_comment(actor_of(stranger), ticket.ticket_id, "hello")


def test_missing_ticket_is_not_found_before_policy(make_user, actor_of):
    stranger = make_user()
    with pytest.raises(TicketNotFoundError):
        TicketService().get_ticket_detail(actor_of(stranger), "TKT-nope")


def test_detail_lists_visible_comments_oldest_first(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent))
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    repo = CommentRepository()
    for i, text in enumerate(["second", "first", "hidden"]):
        repo.create_comment(Comment(
            comment_id=f"CMT-{i}", ticket_id=ticket.ticket_id, user_id=agent.user_id,
            content=text, created_at=base - timedelta(minutes=i), updated_at=base,
        ))
    repo.soft_delete("CMT-2")

    detail = service.get_ticket_detail(actor_of(agent), ticket.ticket_id)

    assert detail["ticket"]["ticket_id"] == ticket.ticket_id
    assert detail["ticket"]["created_by_user"]["user_id"] == agent.user_id
    assert [c["content"] for c in detail["comments"]] == ["first", "second"]
    assert detail["comments"][0]["author"]["name"] == agent.name


def test_comment_soft_delete_rules(make_user, actor_of, mongo_db):
    agent = make_user(role=UserRole.AGENT)
    other_agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent))
    comment = service.add_comment(actor_of(agent), ticket.ticket_id, "Will restart the router")

    with pytest.raises(PermissionDeniedError):
        service.delete_comment(actor_of(other_agent), ticket.ticket_id, comment.comment_id)

    service.delete_comment(actor_of(agent), ticket.ticket_id, comment.comment_id)

    stored = mongo_db["comments"].find_one({"comment_id": comment.comment_id})
    assert stored["deleted_at"] is not None
    with pytest.raises(CommentNotFoundError):
        service.delete_comment(actor_of(agent), ticket.ticket_id, comment.comment_id)


def test_delete_keeps_comments_and_notifications(make_user, actor_of, mongo_db):
    manager = make_user(role=UserRole.MANAGER)
    assignee = make_user()
    service = TicketService()
    ticket = _new_ticket(service, actor_of(manager), assignee=assignee.user_id)
    service.add_comment(actor_of(assignee), ticket.ticket_id, "Still broken")

    service.delete_ticket(actor_of(manager), ticket.ticket_id)

    assert mongo_db["tickets"].count_documents({}) == 0
    assert mongo_db["comments"].count_documents({"ticket_id": ticket.ticket_id}) == 1
    assert mongo_db["notifications"].count_documents({}) == 2


def test_agent_cannot_delete(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    service = TicketService()
    ticket = _new_ticket(service, actor_of(agent))
    with pytest.raises(PermissionDeniedError):
        service.delete_ticket(actor_of(agent), ticket.ticket_id)
