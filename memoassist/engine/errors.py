"""Error taxonomy for the suggestion engine.

Nothing here is fatal to a scheduling pass: MissingStateError excludes one
memo from scoring, InvalidReactionError is reported back to the caller.
"""

from typing import Optional


class MemoAssistError(Exception):
    """Base class for engine errors."""


class MissingStateError(MemoAssistError):
    """A memo's type has no matching state record (data-integrity fault)."""

    def __init__(self, memo_id: str, memo_type: str, found_kind: Optional[str] = None):
        self.memo_id = memo_id
        self.memo_type = memo_type
        self.found_kind = found_kind
        super().__init__(
            f"Memo {memo_id} of type {memo_type} carries state {found_kind or 'none'}"
        )


class InvalidReactionError(MemoAssistError):
    """A reaction that cannot be applied to the memo's current state."""

    def __init__(self, memo_id: str, action: str, reason: str):
        self.memo_id = memo_id
        self.action = action
        self.reason = reason
        super().__init__(f"Cannot {action} memo {memo_id}: {reason}")
