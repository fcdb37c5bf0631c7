"""FastAPI web application for memoassist."""

import logging
from datetime import date, datetime
from typing import List, Optional, Dict
from fastapi import FastAPI, HTTPException, Depends, Query
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from memoassist.models.memo import Memo, MemoType, Importance, LocationPreference, RecurrenceGoal, AcceptedSlot
from memoassist.models.suggestion import Suggestion, Gap, Event, Placement
from memoassist.database.database import get_db, init_db
from memoassist.database.repository import MemoRepository
from memoassist.engine.service import SuggestionEngine
from memoassist.engine.reactions import ReactionType

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="memoassist API",
    description="Decides which memos deserve attention today and fits them into the day's free time",
    version="0.1.0"
)


@app.on_event("startup")
async def startup():
    init_db()


def get_engine(db: Session = Depends(get_db)) -> SuggestionEngine:
    """Engine bound to the request's database session."""
    return SuggestionEngine(MemoRepository(db))


# Request models
class MemoCreateRequest(BaseModel):
    """Request to create a memo; blank estimates are filled by enrichment."""
    title: str = Field(..., min_length=1)
    type: MemoType
    deadline: Optional[datetime] = None
    recurrence_goal: Optional[RecurrenceGoal] = None
    genre: Optional[str] = None
    importance: Optional[Importance] = None
    location_preference: Optional[LocationPreference] = None
    session_duration: Optional[int] = Field(None, gt=0)
    total_duration_expected: Optional[int] = Field(None, gt=0)
    suggestion_available_from: Optional[datetime] = None


class MemoUpdateRequest(BaseModel):
    """Partial memo edit (never counts as activity)."""
    title: Optional[str] = Field(None, min_length=1)
    genre: Optional[str] = None
    deadline: Optional[datetime] = None
    recurrence_goal: Optional[RecurrenceGoal] = None
    importance: Optional[Importance] = None
    location_preference: Optional[LocationPreference] = None
    session_duration: Optional[int] = Field(None, gt=0)
    total_duration_expected: Optional[int] = Field(None, gt=0)
    suggestion_available_from: Optional[datetime] = None


class ScheduleRequest(BaseModel):
    """Request to plan a day."""
    day: Optional[date] = None
    gaps: List[Gap] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)


class ReactionRequest(BaseModel):
    """A user reaction to a memo."""
    action: ReactionType
    slot: Optional[AcceptedSlot] = None
    actual_duration: Optional[int] = None


# Response models
class MemoResponse(BaseModel):
    """Response for a single memo."""
    memo: Memo


class MemoListResponse(BaseModel):
    """Response for memo listing."""
    memos: List[Memo]


class SuggestionListResponse(BaseModel):
    """Response for the visible suggestions of a day."""
    day: date
    suggestions: List[Suggestion]


class ScheduleResponse(BaseModel):
    """Response for a planned day."""
    day: date
    suggestions: List[Suggestion]
    placements: Dict[str, str] = Field(default_factory=dict, description="Map of memo_id to gap_id")
    details: List[Placement]
    remaining_capacity: Dict[str, int] = Field(default_factory=dict, description="Map of gap_id to unused minutes")
    unplaced: List[str]
    mandatory_unplaced: List[str]


class ReactionResponse(BaseModel):
    """Response for a reaction."""
    memo_id: str
    action: str
    applied: bool
    missing: bool = False
    memo: Optional[Memo] = None


class DayBoundaryResponse(BaseModel):
    """Response for the day-boundary reset."""
    rolled_over: int


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/memos", response_model=MemoResponse, status_code=201)
async def create_memo(request: MemoCreateRequest, engine: SuggestionEngine = Depends(get_engine)):
    """Create a memo (missing estimates are enriched)."""
    try:
        memo = engine.create_memo(
            title=request.title,
            memo_type=request.type,
            deadline=request.deadline,
            recurrence_goal=request.recurrence_goal,
            importance=request.importance,
            genre=request.genre,
            location_preference=request.location_preference,
            session_duration=request.session_duration,
            total_duration_expected=request.total_duration_expected,
            suggestion_available_from=request.suggestion_available_from,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid memo: {e.error_count()} validation error(s)")
    return MemoResponse(memo=memo)


@app.get("/memos", response_model=MemoListResponse)
async def list_memos(db: Session = Depends(get_db)):
    """List active memos (newest first)."""
    return MemoListResponse(memos=MemoRepository(db).get_all())


@app.get("/memos/{memo_id}", response_model=MemoResponse)
async def get_memo(memo_id: str, db: Session = Depends(get_db)):
    """Get one memo."""
    memo = MemoRepository(db).get(memo_id)
    if memo is None:
        raise HTTPException(status_code=404, detail=f"Memo {memo_id} not found")
    return MemoResponse(memo=memo)


@app.patch("/memos/{memo_id}", response_model=MemoResponse)
async def update_memo(memo_id: str, request: MemoUpdateRequest, engine: SuggestionEngine = Depends(get_engine)):
    """Edit a memo."""
    try:
        memo = engine.update_memo(memo_id, request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid memo: {e.error_count()} validation error(s)")
    if memo is None:
        raise HTTPException(status_code=404, detail=f"Memo {memo_id} not found")
    return MemoResponse(memo=memo)


@app.delete("/memos/{memo_id}", status_code=204)
async def delete_memo(memo_id: str, engine: SuggestionEngine = Depends(get_engine)):
    """Soft-delete a memo."""
    if not engine.delete_memo(memo_id):
        raise HTTPException(status_code=404, detail=f"Memo {memo_id} not found")


@app.get("/suggestions", response_model=SuggestionListResponse)
async def get_suggestions(
    day: Optional[date] = Query(None, description="Day to score (YYYY-MM-DD); today by default"),
    engine: SuggestionEngine = Depends(get_engine),
):
    """Visible suggestions for a day, highest priority first."""
    target = day or engine.clock().date()
    return SuggestionListResponse(day=target, suggestions=engine.compute_suggestions(target))


@app.post("/schedule", response_model=ScheduleResponse)
async def build_schedule(request: ScheduleRequest, engine: SuggestionEngine = Depends(get_engine)):
    """Score memos and allocate them to the given gaps."""
    plan = engine.plan_day(day=request.day, gaps=request.gaps, events=request.events)
    allocation = plan.allocation
    return ScheduleResponse(
        day=plan.day,
        suggestions=plan.suggestions,
        placements=allocation.placements,
        details=allocation.details,
        remaining_capacity=allocation.remaining_capacity,
        unplaced=allocation.unplaced,
        mandatory_unplaced=allocation.mandatory_unplaced,
    )


@app.post("/memos/{memo_id}/reactions", response_model=ReactionResponse)
async def react(memo_id: str, request: ReactionRequest, engine: SuggestionEngine = Depends(get_engine)):
    """Apply accept/reject/complete/undo to a memo.

    A missing memo is not an error (the reaction may have been in flight when
    the memo was deleted); an invalid reaction is a 409.
    """
    result = engine.react(
        memo_id,
        request.action.value,
        slot=request.slot,
        actual_duration=request.actual_duration,
    )
    if result.error is not None:
        raise HTTPException(status_code=409, detail=result.error)
    return ReactionResponse(
        memo_id=result.memo_id,
        action=result.action,
        applied=result.applied,
        missing=result.missing,
        memo=result.memo,
    )


@app.post("/day-boundary", response_model=DayBoundaryResponse)
async def day_boundary(engine: SuggestionEngine = Depends(get_engine)):
    """Force rollover of every memo (called once a day by the external scheduler)."""
    return DayBoundaryResponse(rolled_over=engine.on_day_boundary())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
