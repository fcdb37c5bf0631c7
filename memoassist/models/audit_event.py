"""AuditEvent data model for memoassist."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Audit event type enumeration."""
    MEMO_CREATED = "memo_created"
    MEMO_ENRICHED = "memo_enriched"
    DAY_ROLLED_OVER = "day_rolled_over"
    PERIOD_ROLLED_OVER = "period_rolled_over"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    UNDONE = "undone"
    REACTION_REFUSED = "reaction_refused"
    PLAN_BUILT = "plan_built"
    MANDATORY_UNPLACED = "mandatory_unplaced"


class AuditEvent(BaseModel):
    """Audit event captures what the engine decided and why a memo changed."""

    id: str = Field(..., description="Unique audit event identifier")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Event timestamp")
    event_type: AuditEventType = Field(..., description="Type of audit event")
    memo_id: Optional[str] = Field(None, description="Memo this event relates to (None for pass-level events)")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional event details")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
