"""SQLAlchemy database models for memoassist."""

from datetime import datetime
from typing import Union, TypeVar, Type
import uuid
from sqlalchemy import Column, String, Integer, DateTime, JSON

from memoassist.database.database import Base
from memoassist.models.memo import Importance, LocationPreference

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class MemoDB(Base):
    """Database model for Memo.

    The type-specific state record and the routine goal are stored as JSON;
    the state's `kind` tag selects the state class when loading.
    """

    __tablename__ = "memos"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Basic fields
    title = Column(String, nullable=False)
    genre = Column(String, nullable=True)
    type = Column(String, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)
    last_activity = Column(DateTime, nullable=True)
    suggestion_available_from = Column(DateTime, nullable=True)

    # Type-specific goals
    deadline = Column(DateTime, nullable=True)
    recurrence_goal = Column(JSON, nullable=True)

    # Preferences and estimates
    location_preference = Column(String, nullable=False, default=LocationPreference.NONE.value)
    importance = Column(String, nullable=False, default=Importance.MEDIUM.value)
    session_duration = Column(Integer, nullable=True)
    total_duration_expected = Column(Integer, nullable=True)

    # Progress
    time_spent_minutes = Column(Integer, nullable=False, default=0)
    time_spent_today = Column(Integer, nullable=False, default=0)

    # Type-specific state record (JSON)
    state = Column(JSON, nullable=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from memoassist.models.memo import Memo

        return Memo(
            id=self.id,
            title=self.title,
            genre=self.genre,
            type=self.type,
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
            deadline=self.deadline,
            recurrence_goal=self.recurrence_goal,
            location_preference=value_to_enum(self.location_preference, LocationPreference, LocationPreference.NONE),
            session_duration=self.session_duration,
            total_duration_expected=self.total_duration_expected,
            importance=value_to_enum(self.importance, Importance, Importance.MEDIUM),
            last_activity=self.last_activity,
            time_spent_minutes=self.time_spent_minutes or 0,
            time_spent_today=self.time_spent_today or 0,
            suggestion_available_from=self.suggestion_available_from,
            state=self.state,
        )

    def apply_pydantic(self, memo) -> None:
        """Copy every field of a Pydantic Memo onto this row."""
        self.title = memo.title
        self.genre = memo.genre
        self.type = enum_to_value(memo.type)
        self.created_at = memo.created_at
        self.updated_at = memo.updated_at
        self.deleted_at = memo.deleted_at
        self.deadline = memo.deadline
        self.recurrence_goal = memo.recurrence_goal.model_dump(mode="json") if memo.recurrence_goal else None
        self.location_preference = enum_to_value(memo.location_preference)
        self.session_duration = memo.session_duration
        self.total_duration_expected = memo.total_duration_expected
        self.importance = enum_to_value(memo.importance)
        self.last_activity = memo.last_activity
        self.time_spent_minutes = memo.time_spent_minutes
        self.time_spent_today = memo.time_spent_today
        self.suggestion_available_from = memo.suggestion_available_from
        self.state = memo.state.model_dump(mode="json") if memo.state is not None else None

    @classmethod
    def from_pydantic(cls, memo):
        """Create database model from Pydantic model."""
        memo_db = cls(id=memo.id)
        memo_db.apply_pydantic(memo)
        return memo_db
