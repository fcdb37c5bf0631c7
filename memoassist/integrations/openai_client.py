"""OpenAI API integration for memoassist.

This module provides OpenAI API integration for memo field enrichment: guessing
a memo's genre, importance, session length and total expected work from its
title when the user left them blank.
"""

import os
import json
import logging
from typing import Any, Dict, Optional
from openai import OpenAI, APIError
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# OpenAI model to use for enrichment (cheap and fast; responses are tiny)
OPENAI_MODEL = os.getenv("MEMOASSIST_ENRICHMENT_MODEL", "gpt-4o-mini")

ENRICHMENT_PROMPT_TEMPLATE = """You are a personal task planning assistant. Given a task title and its type, estimate how the user will work on it.

Task type: {memo_type}
- deadline: a task that must be finished by a date
- routine: a habit repeated a number of times per day/week/month
- backlog: a task with no due date

Task title: "{title}"

Respond with a JSON object containing:
- "genre": one of "study", "exercise", "chores", "work", "hobby", "other"
- "importance": one of "low", "medium", "high"
- "session_duration": minutes for one focused session (10-120)
- "total_duration_expected": minutes of work in total (at least session_duration)

Example response:
{{"genre": "study", "importance": "high", "session_duration": 45, "total_duration_expected": 180}}

Respond only with the JSON object, no other text."""


def _strip_code_fences(content: str) -> str:
    """Remove markdown code fences some responses wrap JSON in."""
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class OpenAIClient:
    """Client for OpenAI API integration."""

    def __init__(self, api_key: Optional[str] = None):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.

        Note:
            Without a key the client still initializes; enrich_memo_fields then
            returns None and callers fall back to deterministic defaults.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.client = None

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Memo enrichment will use fallbacks.")

    @property
    def is_available(self) -> bool:
        return self.client is not None

    def enrich_memo_fields(self, title: str, memo_type: str) -> Optional[Dict[str, Any]]:
        """Ask the model for a memo's genre, importance and durations.

        Args:
            title: Memo title
            memo_type: "deadline", "routine" or "backlog"

        Returns:
            Raw parsed JSON object, or None if:
            - API key is not configured
            - Title is empty
            - API call fails
            - Response is not a JSON object
        """
        if not self.client:
            logger.debug("OpenAI client not initialized. Skipping enrichment.")
            return None

        if not title or not title.strip():
            logger.debug("Empty title provided. Skipping enrichment.")
            return None

        try:
            prompt = ENRICHMENT_PROMPT_TEMPLATE.format(title=title, memo_type=memo_type)
            response = self.client.chat.completions.create(
                model=OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": "You are a task planning assistant. Respond only with valid JSON."},
                    {"role": "user", "content": prompt}
                ],
                temperature=0.3,
                max_tokens=120,
            )
            response_content = _strip_code_fences(response.choices[0].message.content.strip())

            try:
                result = json.loads(response_content)
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse OpenAI JSON response: {e}. Response: {response_content[:100]}")
                return None

            if not isinstance(result, dict):
                logger.warning("OpenAI enrichment response is not a JSON object.")
                return None

            logger.debug(f"OpenAI enrichment returned fields: {sorted(result.keys())}")
            return result

        except APIError as e:
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded. Please wait before retrying.")
            else:
                logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")

            # Don't log full error message as it might contain sensitive info
            return None
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {type(e).__name__}")
            return None
