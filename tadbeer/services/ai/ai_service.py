"""AI Service - Ticket triage suggestions and ticket Q&A

The model is asked for a JSON object which is validated against the
result schema. Whenever the provider is missing, the input is empty, the
call fails or the output does not validate, a fixed fallback answer is
returned instead, so these endpoints never fail because of the model.
"""
import json
import re
from typing import Any, Dict, Optional
from pydantic import ValidationError as PydanticValidationError

from ...domain.models import ActorContext
from ...domain.enums import TicketCategory, TicketPriority, TicketStatus
from ...domain.errors import ValidationError
from ...engine.permission_guard import PermissionGuard
from ...repositories.ticket_repo import TicketRepository
from ...repositories.comment_repo import CommentRepository
from ...repositories.user_repo import UserRepository
from ...utils.logger import get_logger
from .client import create_ai_client, complete_json
from .prompts import TICKET_SUGGEST_PROMPT, TICKET_ASSIST_PROMPT
from .schemas import SuggestTicketResult, AssistTicketResult

logger = get_logger(__name__)

RECENT_COMMENTS_FOR_CONTEXT = 10

_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def parse_json_lenient(text: Optional[str]) -> Optional[Any]:
    """Parse model output: the whole text, else the outermost {...} span"""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    match = _OBJECT_SPAN.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return None


def fallback_suggestion(reason: Optional[str] = None) -> SuggestTicketResult:
    return SuggestTicketResult(
        priority=TicketPriority.MEDIUM,
        category=TicketCategory.TECHNICAL,
        short_summary=f"AI fallback: {reason}"[:240] if reason else "AI unavailable, default triage applied.",
        steps=[
            "Share the exact error message or a screenshot.",
            "Confirm when the issue started and what changed.",
            "Try to reproduce the issue and list the steps.",
        ],
        clarifying_question="What exact error do you see, and who is affected (one user or many)?"
    )


def fallback_assist(reason: Optional[str] = None) -> AssistTicketResult:
    reply = (
        f"AI is unavailable ({reason}). Share the exact error and what you tried."
        if reason else
        "AI is currently unavailable. Share the exact error and what you tried."
    )
    return AssistTicketResult(
        reply=reply[:600],
        steps=[
            "Provide steps to reproduce the issue.",
            "Attach a screenshot or error code.",
            "Test on another device or network if possible.",
        ],
        clarifying_question="What is the exact error message, and does it happen for all users?"
    )


class AIService:
    """Service for AI-assisted ticket handling"""

    def __init__(self):
        self.client = create_ai_client()
        self.ticket_repo = TicketRepository()
        self.comment_repo = CommentRepository()
        self.user_repo = UserRepository()
        self.guard = PermissionGuard()

    def _ask(self, system_prompt: str, payload: Dict[str, Any]) -> str:
        return complete_json(self.client, system_prompt, json.dumps(payload, default=str))

    # =========================================================================
    # Triage suggestion
    # =========================================================================

    def suggest_ticket(self, title: str, description: str) -> SuggestTicketResult:
        """Suggest priority, category, summary and first steps for a new ticket"""
        title = (title or "").strip()
        description = (description or "").strip()
        if not title and not description:
            return fallback_suggestion("Empty input")
        if not self.client:
            return fallback_suggestion("AI provider not configured")

        payload = {
            "title": title,
            "description": description,
            "allowed_priorities": [p.value for p in TicketPriority],
            "allowed_categories": [c.value for c in TicketCategory],
        }

        try:
            text = self._ask(TICKET_SUGGEST_PROMPT, payload)
        except Exception as e:
            logger.error(f"AI suggest error: {e}")
            return fallback_suggestion(str(e) or "AI error")

        try:
            return SuggestTicketResult.model_validate(parse_json_lenient(text))
        except PydanticValidationError as e:
            logger.warning(f"Suggest validation failed: {e.errors()}; raw={text[:500]!r}")
            return fallback_suggestion("Invalid JSON from model")

    # =========================================================================
    # Ticket assistance
    # =========================================================================

    def build_ticket_context(self, ticket_id: str) -> Dict[str, Any]:
        """Ticket fields plus the latest comments, oldest first"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        comments = self.comment_repo.recent_for_ticket(ticket_id, RECENT_COMMENTS_FOR_CONTEXT)
        authors = self.user_repo.get_users_by_ids([c.user_id for c in comments])

        recent_comments = []
        for comment in comments:
            author = authors.get(comment.user_id)
            recent_comments.append({
                "author": (author.name or author.email) if author else "User",
                "text": comment.content,
                "created_at": comment.created_at.isoformat(),
            })

        return {
            "ticket_id": ticket.ticket_id,
            "title": ticket.title,
            "description": ticket.description,
            "status": ticket.status.value,
            "priority": ticket.priority.value,
            "recent_comments": recent_comments,
        }

    def assist_ticket(self, actor: ActorContext, ticket_id: Optional[str], question: Optional[str]) -> AssistTicketResult:
        """Answer a question about a ticket the actor can access"""
        ticket_id = (ticket_id or "").strip()
        question = (question or "").strip()
        if not ticket_id:
            raise ValidationError("ticket_id is required")
        if not question:
            raise ValidationError("question is required")

        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)

        if not self.client:
            return fallback_assist("AI provider not configured")

        payload = {
            "ticket": self.build_ticket_context(ticket_id),
            "question": question,
            "allowed_statuses": [s.value for s in TicketStatus],
        }

        try:
            text = self._ask(TICKET_ASSIST_PROMPT, payload)
        except Exception as e:
            logger.error(f"AI assist error: {e}", extra={"ticket_id": ticket_id})
            return fallback_assist(str(e) or "AI error")

        try:
            return AssistTicketResult.model_validate(parse_json_lenient(text))
        except PydanticValidationError as e:
            logger.warning(
                f"Assist validation failed: {e.errors()}; raw={text[:500]!r}",
                extra={"ticket_id": ticket_id}
            )
            return fallback_assist("Invalid JSON from model")
