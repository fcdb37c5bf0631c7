"""Memo field enrichment for memoassist.

Fills a new memo's missing genre, importance, session duration and total
expected duration. The model is asked first; whenever it is unavailable,
disabled, fails, or answers nonsense, deterministic per-type fallbacks are
used instead. Enrichment never raises and never blocks memo creation.

Private memos (title starting with ".") are never sent to the model.
"""

import os
import logging
from typing import Any, Dict, Iterable, Optional

from memoassist.models.memo import Memo, Importance
from memoassist.models.memo_factory import is_private_title
from memoassist.integrations.openai_client import OpenAIClient
from memoassist.models.constants import (
    FALLBACK_DURATIONS,
    FALLBACK_GENRE,
    KNOWN_GENRES,
    GENRE_KEYWORDS,
    MIN_SESSION_MINUTES,
    MAX_SESSION_MINUTES,
    DEFAULT_IMPORTANCE,
)

logger = logging.getLogger(__name__)

ENRICHABLE_FIELDS = ("genre", "importance", "session_duration", "total_duration_expected")

SOURCE_MODEL = "model"
SOURCE_FALLBACK = "fallback"
SOURCE_NONE = "none"

# Initialize OpenAI client (singleton pattern)
_openai_client: Optional[OpenAIClient] = None


def _get_openai_client() -> OpenAIClient:
    """Get or create OpenAI client instance."""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAIClient()
    return _openai_client


def enrichment_enabled() -> bool:
    return os.getenv("MEMOASSIST_ENRICHMENT_ENABLED", "True").lower() == "true"


def guess_genre(title: str) -> str:
    """Guess a genre from title keywords; FALLBACK_GENRE when nothing matches."""
    lowered = (title or "").lower()
    for genre, keywords in GENRE_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return genre
    return FALLBACK_GENRE


def fallback_fields(memo: Memo) -> Dict[str, Any]:
    """Deterministic, type-appropriate defaults."""
    session, total = FALLBACK_DURATIONS[memo.type]
    return {
        "genre": guess_genre(memo.title),
        "importance": DEFAULT_IMPORTANCE.value,
        "session_duration": session,
        "total_duration_expected": total,
    }


def sanitize_fields(raw: Dict[str, Any], memo: Memo) -> Dict[str, Any]:
    """Coerce a model answer into valid field values, falling back field by field."""
    fallback = fallback_fields(memo)
    fields = dict(fallback)

    genre = str(raw.get("genre") or "").strip().lower()
    fields["genre"] = genre if genre in KNOWN_GENRES else FALLBACK_GENRE

    importance = str(raw.get("importance") or "").strip().lower()
    try:
        fields["importance"] = Importance(importance).value
    except ValueError:
        fields["importance"] = fallback["importance"]

    try:
        session = int(raw.get("session_duration"))
    except (TypeError, ValueError):
        session = fallback["session_duration"]
    fields["session_duration"] = max(MIN_SESSION_MINUTES, min(MAX_SESSION_MINUTES, session))

    try:
        total = int(raw.get("total_duration_expected"))
    except (TypeError, ValueError):
        total = fallback["total_duration_expected"]
    fields["total_duration_expected"] = max(total, fields["session_duration"])
    return fields


def missing_fields(memo: Memo) -> set:
    """Enrichable fields the memo has no value for (importance always has one)."""
    return {name for name in ENRICHABLE_FIELDS if getattr(memo, name) is None}


def enrich_memo(memo: Memo, fields: Optional[Iterable[str]] = None) -> str:
    """Fill missing enrichable fields on `memo` in place.

    Args:
        memo: Memo to enrich
        fields: Field names to fill; defaults to the fields that are None

    Returns:
        Where the values came from: SOURCE_MODEL, SOURCE_FALLBACK, or SOURCE_NONE
        when there was nothing to fill
    """
    wanted = set(fields) if fields is not None else missing_fields(memo)
    wanted &= set(ENRICHABLE_FIELDS)
    if not wanted:
        return SOURCE_NONE

    values = None
    asked_model = False
    if is_private_title(memo.title):
        logger.debug(f"Memo {memo.id} is private. Using fallback enrichment.")
    elif not enrichment_enabled():
        logger.debug("Enrichment disabled. Using fallback enrichment.")
    else:
        asked_model = True
        try:
            raw = _get_openai_client().enrich_memo_fields(memo.title, memo.type)
            if raw is not None:
                values = sanitize_fields(raw, memo)
        except Exception as e:
            logger.error(f"Error enriching memo {memo.id}: {type(e).__name__}: {str(e)}")

    source = SOURCE_MODEL
    if values is None:
        if asked_model:
            logger.warning(f"Enrichment unavailable for memo {memo.id}. Using fallback values.")
        values = fallback_fields(memo)
        source = SOURCE_FALLBACK

    for name in sorted(wanted):
        setattr(memo, name, values[name])

    # Keep totals consistent with a user-set session
    if "total_duration_expected" in wanted and memo.session_duration and memo.total_duration_expected < memo.session_duration:
        memo.total_duration_expected = memo.session_duration
    logger.debug(f"Enriched memo {memo.id} fields {sorted(wanted)} from {source}")
    return source
