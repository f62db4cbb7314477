"""Dictionary lookup client (Free Dictionary API) with an in-memory cache.

Definitions are passed through a plain-English cleanup layer so learners get
short, simple meanings.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from ..config import Settings, get_settings
from ..exceptions import EnrichmentError
from ..models import DictionaryEntry, normalize_word
from .base import HTTPClient

logger = logging.getLogger(__name__)

PHRASE_REPLACEMENTS = [
    (re.compile(r"\bthe act of\b", re.IGNORECASE), "doing"),
    (re.compile(r"\bthe process of\b", re.IGNORECASE), "the way of"),
    (re.compile(r"\bused to\b", re.IGNORECASE), "used for"),
    (re.compile(r"\bobtain\b", re.IGNORECASE), "get"),
    (re.compile(r"\butilize\b", re.IGNORECASE), "use"),
    (re.compile(r"\breside\b", re.IGNORECASE), "live"),
    (re.compile(r"\bconsume\b", re.IGNORECASE), "eat or drink"),
    (re.compile(r"\bcommence\b", re.IGNORECASE), "start"),
    (re.compile(r"\bterminate\b", re.IGNORECASE), "end"),
    (re.compile(r"\bapproximately\b", re.IGNORECASE), "about"),
    (re.compile(r"\bin order to\b", re.IGNORECASE), "to"),
    (re.compile(r"\bthat is to say\b", re.IGNORECASE), "meaning"),
    (re.compile(r"\be\.g\.", re.IGNORECASE), "for example"),
    (re.compile(r"\bi\.e\.", re.IGNORECASE), "in other words"),
    (re.compile(r"\bchiefly\b", re.IGNORECASE), "mostly"),
    (re.compile(r"\busually\b", re.IGNORECASE), "often"),
    (re.compile(r"\bone who\b", re.IGNORECASE), "a person who"),
    (re.compile(r"\bthat which\b", re.IGNORECASE), "something that"),
]

MAX_DEFINITION_WORDS = 30


def normalize_spaces(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", str(text or "")).strip()


def sentence_case(text: str) -> str:
    return text[:1].upper() + text[1:] if text else ""


def definition_complexity_score(definition: str) -> int:
    """Lower is simpler: word count, long words and heavy punctuation add up."""
    clean = normalize_spaces(definition).lower()
    words = clean.split()
    long_words = sum(1 for w in words if len(re.sub(r"[^a-z]", "", w)) >= 11)
    punctuation_penalty = 2 if re.search(r"[;:()]", clean) else 0
    return len(words) + long_words * 2 + punctuation_penalty


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def pick_best_definition(entry: Dict[str, Any]) -> Dict[str, str]:
    """
    Choose the simplest definition of an API entry.

    Definitions of 5 to 24 words are preferred; among those the lowest
    complexity score wins. Returns empty strings when the entry has none.
    """
    candidates: List[Dict[str, str]] = []
    for meaning in _as_list(entry.get("meanings")):
        if not isinstance(meaning, dict):
            continue
        for definition in _as_list(meaning.get("definitions")):
            if not isinstance(definition, dict):
                continue
            text = normalize_spaces(definition.get("definition"))
            if not text:
                continue
            candidates.append(
                {
                    "definition": text,
                    "part_of_speech": normalize_spaces(meaning.get("partOfSpeech")),
                    "example": normalize_spaces(definition.get("example")),
                }
            )

    if not candidates:
        return {"definition": "", "part_of_speech": "", "example": ""}

    medium_length = [
        c for c in candidates if 5 <= len(c["definition"].split()) <= 24
    ]
    pool = medium_length or candidates
    return min(pool, key=lambda c: definition_complexity_score(c["definition"]))


def simplify_definition(definition: str) -> str:
    """Rewrite a dictionary definition in plainer, shorter English."""
    text = normalize_spaces(definition)
    if not text:
        return ""

    # Side notes in brackets go; the core meaning stays.
    text = re.sub(r"\([^)]*\)", "", text)
    text = re.sub(r"\[[^\]]*\]", "", text)
    text = normalize_spaces(text)

    for pattern, replacement in PHRASE_REPLACEMENTS:
        text = pattern.sub(replacement, text)

    text = normalize_spaces(re.sub(r"\s+\.", ".", re.sub(r"\s+,", ",", text)))

    words = text.split()
    if len(words) > MAX_DEFINITION_WORDS:
        first_clause = re.split(r"[;:]", text)[0].strip()
        if first_clause != text and len(first_clause.split()) >= 6:
            text = first_clause
        else:
            text = " ".join(words[:MAX_DEFINITION_WORDS]) + "..."

    return sentence_case(text)


def parse_entry(data: Any, key: str) -> DictionaryEntry:
    """
    Build a DictionaryEntry from the API's JSON response.

    Raises:
        EnrichmentError: If the response holds no entry.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise EnrichmentError(f"No dictionary entry for '{key}'.")
    entry = data[0]

    phonetic = normalize_spaces(entry.get("phonetic")) or next(
        (
            normalize_spaces(p.get("text"))
            for p in _as_list(entry.get("phonetics"))
            if isinstance(p, dict) and normalize_spaces(p.get("text"))
        ),
        "",
    )
    best = pick_best_definition(entry)
    raw_definition = best["definition"]
    definition = simplify_definition(raw_definition) or raw_definition

    return DictionaryEntry(
        word=normalize_spaces(entry.get("word")) or key,
        phonetic=phonetic,
        part_of_speech=best["part_of_speech"],
        definition=definition,
        raw_definition=raw_definition,
        example=best["example"],
    )


class DictionaryClient(HTTPClient):
    """
    Looks words up in the Free Dictionary API.

    Results, including misses, are cached per normalised word for the life
    of the client. Every failure yields None.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        super().__init__(timeout_seconds=settings.lookup_timeout_seconds)
        self.base_url = settings.dictionary_api_url.rstrip("/")
        self._cache: Dict[str, Optional[DictionaryEntry]] = {}

    async def lookup(self, word: str) -> Optional[DictionaryEntry]:
        key = normalize_word(word)
        if len(key) < 2:
            return None
        if key in self._cache:
            return self._cache[key]

        try:
            entry = await self._fetch(key)
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, EnrichmentError, ValueError) as e:
            logger.info(f"Dictionary lookup for '{key}' failed: {e}")
            entry = None

        self._cache[key] = entry
        return entry

    async def _fetch(self, key: str) -> DictionaryEntry:
        session = await self._get_session()
        async with session.get(f"{self.base_url}/{quote(key)}") as response:
            if response.status != 200:
                raise EnrichmentError(
                    f"Dictionary API returned HTTP {response.status} for '{key}'."
                )
            data = await response.json(content_type=None)
        return parse_entry(data, key)
