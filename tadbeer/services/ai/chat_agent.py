"""Chat Agent - Two-round tool-calling assistant

Round one asks the model to either request read-only tools or answer
directly. Requested tools (at most MAX_TOOL_CALLS) are executed for the
calling user, and round two asks for the final answer with the tool
results attached. The model speaks a small JSON protocol described in
CHAT_AGENT_PROMPT.
"""
import json
from typing import Any, Dict, List, Optional

from ...domain.models import ActorContext
from ...domain.errors import OpenAIError
from ...utils.logger import get_logger
from .client import create_ai_client, complete_json
from .prompts import CHAT_AGENT_PROMPT
from .schemas import ChatResult
from .tools import ReadOnlyTools
from .ai_service import parse_json_lenient

logger = get_logger(__name__)

MAX_MESSAGES = 20
MAX_TOOL_CALLS = 6


def fallback_chat(reason: Optional[str] = None) -> ChatResult:
    reply = (
        f"AI is unavailable ({reason}). Tell me what you are trying to do and I will help manually."
        if reason else
        "AI is currently unavailable. Tell me what you are trying to do and I will help manually."
    )
    return ChatResult(
        reply=reply,
        steps=["Explain the goal.", "Share the error or message.", "Tell me what you tried."],
        clarifying_question="What page are you on and what exactly are you trying to achieve?"
    )


def _final_answer(out: Dict[str, Any], tool_results: Optional[List[Dict[str, Any]]] = None) -> ChatResult:
    steps = out.get("steps")
    return ChatResult(
        reply=str(out.get("reply") or ""),
        steps=[str(s) for s in steps] if isinstance(steps, list) else [],
        clarifying_question=out.get("clarifying_question") or out.get("clarifyingQuestion") or None,
        tool_results=tool_results
    )


class ChatAgent:
    """Assistant answering free-form questions with read-only tools"""

    def __init__(self, actor: ActorContext):
        self.actor = actor
        self.client = create_ai_client()
        self.tools = ReadOnlyTools(actor)

    def _ask(self, payload: Dict[str, Any]) -> str:
        try:
            return complete_json(self.client, CHAT_AGENT_PROMPT, json.dumps(payload, default=str))
        except Exception as e:
            logger.error(f"AI chat error: {e}", extra={"user_id": self.actor.user_id})
            raise OpenAIError("AI chat failed", details={"reason": str(e)})

    def _run_tools(self, calls: List[Any]) -> List[Dict[str, Any]]:
        results = []
        for call in calls[:MAX_TOOL_CALLS]:
            if not isinstance(call, dict):
                continue
            tool = str(call.get("tool") or "")
            args = call.get("args") if isinstance(call.get("args"), dict) else {}
            try:
                result = self.tools.run(tool, args)
            except Exception as e:
                logger.warning(f"Tool {tool} failed: {e}", extra={"user_id": self.actor.user_id})
                result = {"ok": False, "error": str(e) or "Tool failed"}
            results.append({"tool": tool, "args": args, "result": result})
        return results

    def chat(self, messages: List[Dict[str, str]], page_context: Optional[Dict[str, Any]] = None) -> ChatResult:
        messages = messages[-MAX_MESSAGES:]
        if not messages:
            return fallback_chat("Empty messages")
        if not self.client:
            return fallback_chat("AI provider not configured")

        first_text = self._ask({
            "stage": "decide",
            "page_context": page_context,
            "messages": messages,
        })
        out = parse_json_lenient(first_text)
        if not isinstance(out, dict):
            return ChatResult(reply=first_text or "I couldn't parse the AI output. Try again.")

        if out.get("type") != "tool_calls":
            return _final_answer(out)

        calls = out.get("tool_calls") or out.get("toolCalls") or []
        tool_results = self._run_tools(calls if isinstance(calls, list) else [])
        logger.info(
            f"Chat agent ran {len(tool_results)} tool call(s)",
            extra={"user_id": self.actor.user_id}
        )

        second_text = self._ask({
            "stage": "finalize",
            "page_context": page_context,
            "messages": messages,
            "tool_results": tool_results,
            "interim_reply": out.get("interim_reply") or out.get("interimReply") or "",
        })
        final = parse_json_lenient(second_text)
        if isinstance(final, dict) and final.get("type") == "final":
            return _final_answer(final, tool_results)

        return ChatResult(reply=second_text or "No response.", tool_results=tool_results)
