"""Read-only tools the chat agent may call

Every tool returns ``{"ok": True, "data": ...}`` or ``{"ok": False, "error": ...}``
and applies the same ticket access policy as the REST API.
"""
import math
from typing import Any, Dict, Optional

from ...domain.models import ActorContext
from ...domain.enums import AgentTool
from ...engine.permission_guard import PermissionGuard
from ...repositories.ticket_repo import TicketRepository
from ...repositories.comment_repo import CommentRepository
from ...repositories.user_repo import UserRepository
from .knowledge import search_knowledge


def safe_limit(value: Any, default: int = 10, maximum: int = 50) -> int:
    """Clamp a model-supplied limit to 1..maximum; non-numbers give the default"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return max(1, min(maximum, int(number)))


def _arg(args: Dict[str, Any], *names: str) -> str:
    for name in names:
        value = args.get(name)
        if value is not None:
            return str(value).strip()
    return ""


class ReadOnlyTools:
    """Tool dispatcher bound to the calling user"""

    def __init__(self, actor: ActorContext):
        self.actor = actor
        self.guard = PermissionGuard()
        self.ticket_repo = TicketRepository()
        self.comment_repo = CommentRepository()
        self.user_repo = UserRepository()

    def run(self, tool: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        args = args or {}
        try:
            name = AgentTool(tool)
        except ValueError:
            return {"ok": False, "error": f"Unknown tool: {tool}"}

        handler = getattr(self, f"_{name.value}")
        return handler(args)

    def _search_knowledge(self, args: Dict[str, Any]) -> Dict[str, Any]:
        query = _arg(args, "query", "q")
        if not query:
            return {"ok": False, "error": "query is required"}
        hits = search_knowledge(query, max_hits=safe_limit(args.get("max_hits", args.get("maxHits")), 6, 10))
        return {"ok": True, "data": hits}

    def _get_ticket(self, args: Dict[str, Any]) -> Dict[str, Any]:
        ticket_id = _arg(args, "ticket_id", "ticketId")
        if not ticket_id:
            return {"ok": False, "error": "ticket_id is required"}

        ticket = self.ticket_repo.get_ticket(ticket_id)
        if not ticket:
            return {"ok": False, "error": "Ticket not found"}
        if not self.guard.can_access_ticket(self.actor, ticket):
            return {"ok": False, "error": "Not authorized to access this ticket"}

        users = self.user_repo.get_users_by_ids([ticket.created_by, ticket.assignee])
        data = ticket.model_dump(mode="json", exclude={"attachments"})
        for field, user_id in (("created_by_user", ticket.created_by), ("assignee_user", ticket.assignee)):
            user = users.get(user_id) if user_id else None
            data[field] = user.to_summary().model_dump(mode="json") if user else None
        return {"ok": True, "data": data}

    def _get_ticket_comments(self, args: Dict[str, Any]) -> Dict[str, Any]:
        ticket_id = _arg(args, "ticket_id", "ticketId")
        if not ticket_id:
            return {"ok": False, "error": "ticket_id is required"}

        ticket = self.ticket_repo.get_ticket(ticket_id)
        if not ticket:
            return {"ok": False, "error": "Ticket not found"}
        if not self.guard.can_access_ticket(self.actor, ticket):
            return {"ok": False, "error": "Not authorized to access this ticket"}

        comments = self.comment_repo.recent_for_ticket(ticket_id, safe_limit(args.get("limit"), 10, 30))
        users = self.user_repo.get_users_by_ids([c.user_id for c in comments])
        data = []
        for comment in comments:
            author = users.get(comment.user_id)
            data.append({
                "comment_id": comment.comment_id,
                "author": author.to_summary().model_dump(mode="json") if author else None,
                "content": comment.content,
                "created_at": comment.created_at.isoformat(),
            })
        return {"ok": True, "data": data}

    def _search_tickets(self, args: Dict[str, Any]) -> Dict[str, Any]:
        tickets = self.ticket_repo.search_tickets(
            _arg(args, "query", "q") or None,
            visibility=self.guard.ticket_visibility_filter(self.actor),
            limit=safe_limit(args.get("limit"), 10, 30)
        )
        data = [
            t.model_dump(
                mode="json",
                include={"ticket_id", "title", "status", "priority", "category",
                         "assignee", "created_by", "department_id", "updated_at"}
            )
            for t in tickets
        ]
        return {"ok": True, "data": data}

    def _get_user_basic(self, args: Dict[str, Any]) -> Dict[str, Any]:
        user_id = _arg(args, "user_id", "userId") or self.actor.user_id
        user = self.user_repo.get_user(user_id)
        if not user:
            return {"ok": False, "error": "User not found"}
        return {
            "ok": True,
            "data": user.model_dump(
                mode="json",
                include={"user_id", "name", "email", "role", "department", "department_id"}
            )
        }
