"""Translation of short helper text into the learner's assist language.

Uses the MyMemory public translation API. Only a small fixed set of target
languages is supported; the source language is never sent for translation.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import Settings, get_settings
from ..constants import SOURCE_LANGUAGE, TRANSLATION_LANGUAGES, TRANSLATION_MAX_CHARS
from ..exceptions import EnrichmentError
from .base import HTTPClient
from .dictionary import normalize_spaces

logger = logging.getLogger(__name__)


def cache_key(text: str, target_lang: str) -> str:
    return f"{target_lang}:{normalize_spaces(text).lower()}"


def parse_translation(data: Any) -> str:
    """
    Pull the translated text out of a MyMemory response.

    Raises:
        EnrichmentError: If the response is not shaped as expected.
    """
    if not isinstance(data, dict):
        raise EnrichmentError("Unexpected translation response.")
    response_data = data.get("responseData")
    if not isinstance(response_data, dict):
        raise EnrichmentError("Translation response has no responseData.")
    return normalize_spaces(response_data.get("translatedText"))


class TranslationClient(HTTPClient):
    """
    Translates text from English into one of TRANSLATION_LANGUAGES.

    Returns an empty string whenever no useful translation is available:
    blank input, unsupported language, HTTP or network failure, or a
    response that just echoes the input. Results are cached.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        super().__init__(timeout_seconds=settings.lookup_timeout_seconds)
        self.api_url = settings.translation_api_url
        self._cache: Dict[str, str] = {}

    @staticmethod
    def supports(target_lang: str) -> bool:
        return str(target_lang or "").strip().lower() in TRANSLATION_LANGUAGES

    async def translate(self, text: str, target_lang: str = "ja") -> str:
        source = normalize_spaces(text)
        target = str(target_lang or "").strip().lower()
        if not source or target == SOURCE_LANGUAGE or not self.supports(target):
            return ""

        key = cache_key(source, target)
        if key in self._cache:
            return self._cache[key]

        try:
            translated = await self._fetch(source, target)
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, EnrichmentError, ValueError) as e:
            logger.info(f"Translation to '{target}' failed: {e}")
            translated = ""

        if translated.lower() == source.lower():
            translated = ""
        self._cache[key] = translated
        return translated

    async def _fetch(self, source: str, target: str) -> str:
        session = await self._get_session()
        params = {
            "q": source[:TRANSLATION_MAX_CHARS],
            "langpair": f"{SOURCE_LANGUAGE}|{target}",
        }
        async with session.get(self.api_url, params=params) as response:
            if response.status != 200:
                raise EnrichmentError(
                    f"Translation API returned HTTP {response.status}."
                )
            data = await response.json(content_type=None)
        return parse_translation(data)
