import asyncio
import logging
import re

from promoscreen import config
from promoscreen.errors import AnalysisUnavailableError, MalformedResponseError

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_client = None


def _get_client():
    global _client
    if _client is None:
        from google import genai

        if not config.GEMINI_API_KEY:
            raise AnalysisUnavailableError("GEMINI_API_KEY not configured")
        _client = genai.Client(api_key=config.GEMINI_API_KEY)
    return _client


def extract_json_text(text: str) -> str:
    """Strip markdown fences and any prose around the first JSON object."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.endswith("```"):
            text = text[:-3]
        elif "```" in text:
            text = text[:text.rfind("```")]
    text = text.strip()
    if text.startswith("{") and text.endswith("}"):
        return text
    match = _JSON_OBJECT_RE.search(text)
    if match:
        return match.group()
    return text


async def generate_json(prompt: str, system_instruction: str) -> str:
    """Ask Gemini for a JSON object and return its text.

    Raises:
        AnalysisUnavailableError: the API call itself failed.
        MalformedResponseError: the model returned no text.
    """
    try:
        client = _get_client()
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=config.SCORING_MODEL,
            contents=prompt,
            config={
                "system_instruction": system_instruction,
                "temperature": config.SCORING_TEMPERATURE,
                "response_mime_type": "application/json",
            },
        )
    except AnalysisUnavailableError:
        raise
    except Exception as e:
        raise AnalysisUnavailableError(f"Gemini request failed: {e}") from e

    text = response.text or ""
    if not text.strip():
        raise MalformedResponseError("Gemini returned an empty response")
    logger.debug("[GEMINI] %d chars received from %s", len(text), config.SCORING_MODEL)
    return extract_json_text(text)
