"""
Translation Service

Translates bulk email content into a recipient's preferred language using
the OpenAI chat completions API in JSON mode.

Translation is best effort: English content, a missing API key or any API
or parsing failure returns the original content unchanged.
"""

import json
import logging

from openai import AsyncOpenAI
from pydantic import BaseModel

from plastic_clever.core.config import settings

logger = logging.getLogger(__name__)

LANGUAGE_MAP: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ru": "Russian",
    "zh": "Chinese",
    "ko": "Korean",
    "ar": "Arabic",
    "id": "Indonesian",
    "el": "Greek",
    "cy": "Welsh",
}

SYSTEM_PROMPT = (
    "You are a professional translator. Always return valid JSON with the exact "
    "same structure as the input."
)

_client: AsyncOpenAI | None = None


class EmailContent(BaseModel):
    """Translatable parts of a campaign email."""

    subject: str
    title: str
    message_content: str
    preheader: str | None = None


def get_openai_client() -> AsyncOpenAI | None:
    """Lazily build the shared client; None when no API key is configured."""
    global _client
    if _client is None and settings.openai_api_key:
        _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


def _build_prompt(content: EmailContent, language_name: str) -> str:
    return (
        f"Translate the following email content to {language_name}.\n"
        "Preserve all HTML tags exactly as they are. Only translate the text content, "
        "not the HTML structure.\n"
        "Return ONLY the translated JSON object with the same keys.\n\n"
        f"{json.dumps(content.model_dump(), indent=2, ensure_ascii=False)}"
    )


async def translate_email_content(content: EmailContent, target_language: str) -> EmailContent:
    """
    Translate ``content`` into ``target_language`` (ISO 639-1 code).

    Keys missing from the model's answer keep their original text.
    """
    if not target_language or target_language == "en":
        return content

    client = get_openai_client()
    if client is None:
        logger.warning(f"OPENAI_API_KEY not set - sending untranslated content ({target_language})")
        return content

    language_name = LANGUAGE_MAP.get(target_language, target_language)

    try:
        response = await client.chat.completions.create(
            model=settings.translation_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_prompt(content, language_name)},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        translated = json.loads(response.choices[0].message.content or "{}")
        if not isinstance(translated, dict):
            raise ValueError(f"expected a JSON object, got {type(translated).__name__}")

        return EmailContent(
            subject=translated.get("subject") or content.subject,
            title=translated.get("title") or content.title,
            message_content=translated.get("message_content") or content.message_content,
            preheader=translated.get("preheader") or content.preheader,
        )
    except Exception as e:
        logger.error(f"Translation to {target_language} failed: {e}")
        return content
