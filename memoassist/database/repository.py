"""Repository layer for database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import desc

from memoassist.models.memo import Memo
from memoassist.database.models import MemoDB

logger = logging.getLogger(__name__)


class MemoRepository:
    """Repository for Memo database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _load_rows(self, rows: List[MemoDB]) -> List[Memo]:
        """Convert rows, skipping (and logging) rows that no longer validate."""
        memos: List[Memo] = []
        for row in rows:
            try:
                memos.append(row.to_pydantic())
            except ValidationError as e:
                logger.error(f"Skipping unreadable memo {row.id}: {e.error_count()} validation error(s)")
        return memos

    def create(self, memo: Memo) -> Memo:
        """Create a new memo."""
        try:
            memo_db = MemoDB.from_pydantic(memo)
            self.db.add(memo_db)
            self.db.commit()
            self.db.refresh(memo_db)
            logger.debug(f"Created memo {memo.id}: {memo.title[:50]}")
            return memo_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create memo {memo.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, memo_id: str) -> Optional[Memo]:
        """Get an active (not soft-deleted) memo by ID."""
        memo_db = self.db.query(MemoDB).filter(
            MemoDB.id == memo_id,
            MemoDB.deleted_at.is_(None),
        ).first()
        return memo_db.to_pydantic() if memo_db else None

    def get_all(self) -> List[Memo]:
        """Get all active memos sorted by creation date (newest first)."""
        memos_db = self.db.query(MemoDB).filter(
            MemoDB.deleted_at.is_(None),
        ).order_by(desc(MemoDB.created_at)).all()
        return self._load_rows(memos_db)

    def get_active(self) -> List[Memo]:
        """Get active memos in a stable order for scoring (oldest first, then id)."""
        memos_db = self.db.query(MemoDB).filter(
            MemoDB.deleted_at.is_(None),
        ).order_by(MemoDB.created_at, MemoDB.id).all()
        return self._load_rows(memos_db)

    def update(self, memo: Memo) -> Memo:
        """Update an existing active memo."""
        memo_db = self.db.query(MemoDB).filter(
            MemoDB.id == memo.id,
            MemoDB.deleted_at.is_(None),
        ).first()
        if not memo_db:
            raise ValueError(f"Memo {memo.id} not found")

        memo_db.apply_pydantic(memo)

        try:
            self.db.commit()
            self.db.refresh(memo_db)
            logger.debug(f"Updated memo {memo.id}: {memo.title[:50]}")
            return memo_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update memo {memo.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, memo_id: str) -> bool:
        """Soft-delete a memo by ID."""
        memo_db = self.db.query(MemoDB).filter(
            MemoDB.id == memo_id,
            MemoDB.deleted_at.is_(None),
        ).first()
        if not memo_db:
            return False

        try:
            memo_db.deleted_at = datetime.utcnow()
            self.db.commit()
            logger.debug(f"Soft-deleted memo {memo_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete memo {memo_id}: {type(e).__name__}: {str(e)}")
            raise

