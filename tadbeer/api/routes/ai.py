"""AI Assistant API - Triage suggestions, ticket Q&A and chat"""
from typing import Any, Dict, List, Literal, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep
from ...domain.models import ActorContext
from ...domain.errors import ValidationError
from ...services.ai.ai_service import AIService
from ...services.ai.chat_agent import ChatAgent
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class SuggestRequest(BaseModel):
    title: str = Field("", max_length=200)
    description: str = Field("", max_length=5000)


class AssistRequest(BaseModel):
    ticket_id: Optional[str] = None
    question: str = Field("", max_length=2000)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=8000)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    page_context: Optional[Dict[str, Any]] = None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/tickets/suggest")
async def suggest_ticket(
    request: SuggestRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Suggest priority, category and first steps for a ticket draft"""
    result = AIService().suggest_ticket(request.title, request.description)
    return {"ok": True, "data": result.model_dump(mode="json")}


@router.post("/tickets/assist")
async def assist_ticket(
    request: AssistRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Answer a question about a ticket (ticket ID in the body)"""
    result = AIService().assist_ticket(actor, request.ticket_id, request.question)
    return {"ok": True, "data": result.model_dump(mode="json")}


@router.post("/tickets/{ticket_id}/assist")
async def assist_ticket_by_id(
    ticket_id: str,
    request: AssistRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Answer a question about a ticket (ticket ID in the path)"""
    result = AIService().assist_ticket(actor, ticket_id, request.question)
    return {"ok": True, "data": result.model_dump(mode="json")}


@router.post("/chat")
async def chat(
    request: ChatRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Chat with the assistant

    The assistant may consult project docs and read tickets the caller
    can access before answering.
    """
    if not request.messages:
        raise ValidationError("messages is required")

    agent = ChatAgent(actor)
    result = agent.chat(
        [m.model_dump() for m in request.messages],
        page_context=request.page_context
    )
    return {"ok": True, "data": result.model_dump(mode="json", exclude_none=True)}
