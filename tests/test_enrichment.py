"""Tests for memo enrichment and its deterministic fallback."""

import pytest
from unittest.mock import patch, MagicMock

from memoassist.engine import enrichment
from memoassist.engine.enrichment import (
    enrich_memo,
    fallback_fields,
    guess_genre,
    sanitize_fields,
    SOURCE_MODEL,
    SOURCE_FALLBACK,
    SOURCE_NONE,
)
from memoassist.integrations.openai_client import OpenAIClient
from memoassist.models.memo import MemoType, RecurrenceGoal, Period
from memoassist.models.memo_factory import is_private_title


@pytest.fixture
def model_enabled(monkeypatch):
    monkeypatch.setenv("MEMOASSIST_ENRICHMENT_ENABLED", "true")


def _mock_client(return_value=None, side_effect=None):
    client = MagicMock()
    client.enrich_memo_fields.return_value = return_value
    if side_effect is not None:
        client.enrich_memo_fields.side_effect = side_effect
    return client


class TestFallback:
    """Test deterministic fallback values."""

    def test_guess_genre_from_keywords(self):
        assert guess_genre("Study for the exam") == "study"
        assert guess_genre("Morning run") == "exercise"
        assert guess_genre("Call grandma") == "other"

    @pytest.mark.parametrize("memo_type,session,total", [
        (MemoType.DEADLINE, 45, 90),
        (MemoType.BACKLOG, 30, 60),
    ])
    def test_type_appropriate_durations(self, make_memo, now, memo_type, session, total):
        extra = {"deadline": now.replace(day=20)} if memo_type == MemoType.DEADLINE else {}
        memo = make_memo("Something", memo_type, **extra)
        fields = fallback_fields(memo)
        assert fields["session_duration"] == session
        assert fields["total_duration_expected"] == total
        assert fields["importance"] == "medium"

    def test_disabled_uses_fallback(self, make_memo):
        memo = make_memo("Clean the kitchen")
        with patch.object(enrichment, "_get_openai_client") as get_client:
            assert enrich_memo(memo) == SOURCE_FALLBACK
            get_client.assert_not_called()

        assert memo.genre == "chores"
        assert memo.session_duration == 30
        assert memo.total_duration_expected == 60


class TestModelEnrichment:
    """Test enrichment through the (mocked) model."""

    def test_private_title_never_sent(self, make_memo, model_enabled):
        memo = make_memo(".Therapy homework")
        assert is_private_title(memo.title)
        with patch.object(enrichment, "_get_openai_client") as get_client:
            assert enrich_memo(memo) == SOURCE_FALLBACK
            get_client.assert_not_called()

    def test_model_values_are_used(self, make_memo, model_enabled):
        memo = make_memo("Practice guitar", MemoType.ROUTINE, recurrence_goal=RecurrenceGoal(count=4, period=Period.WEEK))
        client = _mock_client({
            "genre": "hobby",
            "importance": "high",
            "session_duration": 40,
            "total_duration_expected": 160,
        })
        with patch.object(enrichment, "_get_openai_client", return_value=client):
            source = enrich_memo(memo, {"genre", "importance", "session_duration", "total_duration_expected"})

        assert source == SOURCE_MODEL
        assert memo.genre == "hobby"
        assert memo.importance == "high"
        assert memo.session_duration == 40
        assert memo.total_duration_expected == 160
        client.enrich_memo_fields.assert_called_once_with("Practice guitar", "routine")

    def test_only_missing_fields_are_filled(self, make_memo, model_enabled):
        memo = make_memo("Tax return", session_duration=25)
        client = _mock_client({"genre": "work", "importance": "low", "session_duration": 90, "total_duration_expected": 20})
        with patch.object(enrichment, "_get_openai_client", return_value=client):
            enrich_memo(memo)

        assert memo.session_duration == 25
        assert memo.genre == "work"
        assert memo.total_duration_expected == 90

    def test_model_failure_falls_back(self, make_memo, model_enabled):
        memo = make_memo("Water plants")
        with patch.object(enrichment, "_get_openai_client", return_value=_mock_client(None)):
            assert enrich_memo(memo) == SOURCE_FALLBACK
        assert memo.session_duration == 30

    def test_model_exception_falls_back(self, make_memo, model_enabled):
        memo = make_memo("Water plants")
        client = _mock_client(side_effect=RuntimeError("boom"))
        with patch.object(enrichment, "_get_openai_client", return_value=client):
            assert enrich_memo(memo) == SOURCE_FALLBACK
        assert memo.genre == "other"

    def test_nothing_missing(self, make_memo):
        memo = make_memo("Done", genre="work", session_duration=30, total_duration_expected=30)
        assert enrich_memo(memo) == SOURCE_NONE


class TestSanitize:
    """Test coercion of model answers."""

    def test_out_of_range_values_are_coerced(self, make_memo):
        memo = make_memo("Whatever")
        fields = sanitize_fields(
            {"genre": "Cooking", "importance": "urgent", "session_duration": 500, "total_duration_expected": 50},
            memo,
        )
        assert fields == {
            "genre": "other",
            "importance": "medium",
            "session_duration": 120,
            "total_duration_expected": 120,
        }

    def test_non_numeric_durations_use_fallback(self, make_memo):
        memo = make_memo("Whatever")
        fields = sanitize_fields({"genre": "study", "session_duration": "soon", "total_duration_expected": None}, memo)
        assert fields["genre"] == "study"
        assert fields["session_duration"] == 30
        assert fields["total_duration_expected"] == 60


class TestOpenAIClient:
    """Test the OpenAI client wrapper without network access."""

    def test_without_key_returns_none(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        client = OpenAIClient()
        assert client.is_available is False
        assert client.enrich_memo_fields("Anything", "backlog") is None

    def test_parses_fenced_json(self):
        client = OpenAIClient(api_key="test-key")
        response = MagicMock()
        response.choices[0].message.content = '```json\n{"genre": "study", "session_duration": 45}\n```'
        client.client = MagicMock()
        client.client.chat.completions.create.return_value = response

        assert client.enrich_memo_fields("Revise chapter 3", "deadline") == {"genre": "study", "session_duration": 45}

    def test_invalid_json_returns_none(self):
        client = OpenAIClient(api_key="test-key")
        response = MagicMock()
        response.choices[0].message.content = "I think it takes about an hour."
        client.client = MagicMock()
        client.client.chat.completions.create.return_value = response

        assert client.enrich_memo_fields("Revise chapter 3", "deadline") is None
