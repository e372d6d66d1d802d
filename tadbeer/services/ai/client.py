"""OpenAI-compatible client for the AI assistant (OpenRouter by default)"""
from typing import Optional
from openai import OpenAI

from ...config.settings import settings
from ...utils.logger import get_logger

logger = get_logger(__name__)


def create_ai_client() -> Optional[OpenAI]:
    """Build the client, or None when no API key is configured"""
    if not settings.ai_enabled:
        logger.info("AI provider not configured, assistant will use fallbacks")
        return None

    return OpenAI(
        api_key=settings.ai_api_key.strip(),
        base_url=settings.ai_base_url,
        default_headers={
            "HTTP-Referer": settings.ai_app_url,
            "X-Title": settings.ai_app_title,
        }
    )


def complete_json(client: OpenAI, system_prompt: str, user_content: str) -> str:
    """Run one chat completion in JSON mode and return the raw text"""
    response = client.chat.completions.create(
        model=settings.ai_model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ],
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        response_format={"type": "json_object"}
    )

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""
