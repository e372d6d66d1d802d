"""Validated shapes of AI results"""
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ...domain.enums import TicketCategory, TicketPriority


Step = Annotated[str, Field(min_length=3, max_length=200)]


class SuggestTicketResult(BaseModel):
    """Triage suggestion for a new ticket"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    priority: TicketPriority
    category: TicketCategory
    short_summary: str = Field(
        ..., min_length=5, max_length=240,
        validation_alias=AliasChoices("short_summary", "shortSummary")
    )
    steps: List[Step] = Field(..., min_length=1, max_length=10)
    clarifying_question: Optional[str] = Field(
        None, min_length=5, max_length=200,
        validation_alias=AliasChoices("clarifying_question", "clarifyingQuestion")
    )


class AssistTicketResult(BaseModel):
    """Answer to a question about an existing ticket"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    reply: str = Field(..., min_length=5, max_length=600)
    steps: List[Step] = Field(..., min_length=1, max_length=12)
    clarifying_question: Optional[str] = Field(
        None, min_length=5, max_length=200,
        validation_alias=AliasChoices("clarifying_question", "clarifyingQuestion")
    )


class ChatResult(BaseModel):
    """Final answer of the chat agent"""
    reply: str
    steps: List[str] = Field(default_factory=list)
    clarifying_question: Optional[str] = None
    tool_results: Optional[List[Dict[str, Any]]] = None
