"""AI assistant: triage suggestions, ticket Q&A and the chat agent"""
from .ai_service import AIService, parse_json_lenient
from .chat_agent import ChatAgent
from .knowledge import search_knowledge
from .tools import ReadOnlyTools, safe_limit

__all__ = [
    "AIService",
    "ChatAgent",
    "ReadOnlyTools",
    "parse_json_lenient",
    "search_knowledge",
    "safe_limit",
]
