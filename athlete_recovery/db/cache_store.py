"""SQL-backed recovery cache for deployments running several engine instances."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.dialects import postgresql, sqlite

from ..analysis.models import RecoveryAnalysis
from ..cache import RECOVERY_KIND, Clock
from ..config import config
from .database import Database, get_db
from .models import CachedAnalysis

logger = logging.getLogger(__name__)

INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _utc_naive(moment: datetime) -> datetime:
    """SQLite drops tzinfo, so timestamps are stored as naive UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class SqlRecoveryCache:
    """Same contract as ``RecoveryCache``, persisted through SQLAlchemy.

    Every write is a single statement, so concurrent writers for the same
    athlete never see a half-replaced entry.
    """

    def __init__(self, db: Optional[Database] = None, clock: Optional[Clock] = None,
                 ttl: Optional[timedelta] = None):
        self.db = db or get_db()
        self.db.create_tables()
        self.clock = clock or Clock()
        self.ttl = ttl or timedelta(seconds=config.cache_ttl_seconds())

    def get(self, athlete_id: str, kind: str = RECOVERY_KIND) -> Optional[RecoveryAnalysis]:
        now = _utc_naive(self.clock.now())
        with self.db.get_session() as session:
            entry = session.query(CachedAnalysis).filter(
                CachedAnalysis.athlete_id == athlete_id,
                CachedAnalysis.kind == kind,
            ).first()

            if entry is None:
                return None
            entry_id, expired, payload = entry.id, entry.is_expired(now), entry.payload

        if expired:
            self._evict(entry_id, now)
            logger.debug(f"Evicted expired {kind} analysis for athlete {athlete_id}")
            return None

        return RecoveryAnalysis.from_dict(json.loads(payload))

    def _evict(self, entry_id: int, now: datetime) -> None:
        # A concurrent put may have refreshed the row since it was read
        with self.db.get_session() as session:
            session.query(CachedAnalysis).filter(
                CachedAnalysis.id == entry_id,
                CachedAnalysis.expires_at <= now,
            ).delete(synchronize_session=False)

    def put(self, athlete_id: str, analysis: RecoveryAnalysis, kind: str = RECOVERY_KIND,
            ttl: Optional[timedelta] = None) -> CachedAnalysis:
        created_at = _utc_naive(self.clock.now())
        values = dict(
            athlete_id=athlete_id,
            kind=kind,
            payload=json.dumps(analysis.to_dict()),
            created_at=created_at,
            expires_at=created_at + (ttl or self.ttl),
        )

        insert = INSERT_BY_DIALECT[self.db.dialect]
        statement = insert(CachedAnalysis.__table__).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=["athlete_id", "kind"],
            set_={column: statement.excluded[column] for column in ("payload", "created_at", "expires_at")},
        )

        with self.db.get_session() as session:
            session.execute(statement)
        return CachedAnalysis(**values)

    def invalidate_expired(self) -> int:
        """Sweep every expired row. Returns the number removed."""
        now = _utc_naive(self.clock.now())
        with self.db.get_session() as session:
            removed = session.query(CachedAnalysis).filter(
                CachedAnalysis.expires_at <= now
            ).delete(synchronize_session=False)
        if removed:
            logger.info(f"Swept {removed} expired cache entries")
        return removed

    def clear(self, athlete_id: Optional[str] = None) -> None:
        with self.db.get_session() as session:
            query = session.query(CachedAnalysis)
            if athlete_id is not None:
                query = query.filter(CachedAnalysis.athlete_id == athlete_id)
            query.delete(synchronize_session=False)

    def __len__(self) -> int:
        with self.db.get_session() as session:
            return session.query(CachedAnalysis).count()
