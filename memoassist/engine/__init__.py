"""Suggestion scoring and gap allocation engine for memoassist."""

from memoassist.engine.errors import MemoAssistError, MissingStateError, InvalidReactionError
from memoassist.engine.period import roll_over, RolloverResult
from memoassist.engine.need import compute_need, importance_score
from memoassist.engine.duration import predict_duration, build_expected_curve, rebase_deadline
from memoassist.engine.suggestions import build_suggestions, SuggestionBatch
from memoassist.engine.allocator import allocate, rank_suggestions, AllocationResult
from memoassist.engine.reactions import apply_reaction, ReactionType
from memoassist.engine.service import SuggestionEngine, PlanningContext, PlanResult, ReactionResult

__all__ = [
    "MemoAssistError",
    "MissingStateError",
    "InvalidReactionError",
    "roll_over",
    "RolloverResult",
    "compute_need",
    "importance_score",
    "predict_duration",
    "build_expected_curve",
    "rebase_deadline",
    "build_suggestions",
    "SuggestionBatch",
    "allocate",
    "rank_suggestions",
    "AllocationResult",
    "apply_reaction",
    "ReactionType",
    "SuggestionEngine",
    "PlanningContext",
    "PlanResult",
    "ReactionResult",
]
