"""SQLite health store: user interests, specialist directory, content."""

import json
import sqlite3
import time
import uuid
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import structlog

from src.config.constants import COMPONENT_STORE
from src.data_model import days_between, ensure_utc, round_half_up, utc_now
from src.feed.models import ContentItem, Engagement
from src.specialists.models import RecommendationContext, SpecialistCandidate
from src.store.constants import (
    DEFAULT_CONTENT_LIMIT,
    DEFAULT_GENERAL_POOL,
    DEFAULT_TOP_INTERESTS,
    FREQUENCY_POINTS_PER_MENTION,
    FREQUENCY_WEIGHT,
    MAX_CONTEXT_LENGTH,
    MAX_INTEREST_SCORE,
    MENTION_SCORE_INCREMENT,
    NEW_INTEREST_SCORE,
    RECENCY_HORIZON_DAYS,
    RECENCY_WEIGHT,
)
from src.store.errors import ConnectionError as StoreConnectionError
from src.store.metrics import StoreMetrics, TransactionContext
from src.store.migrations import CURRENT_VERSION, MigrationManager
from src.store.models import (
    InterestEventType,
    InterestUpsertResult,
    UserInterest,
    normalize_topic,
)


logger = structlog.get_logger()

_UPSERT_INTEREST_SQL = """
INSERT INTO user_interests (
    user_id, topic, relevance_score, mention_count,
    first_mentioned, last_engaged, context
)
VALUES (?, ?, ?, 1, ?, ?, ?)
ON CONFLICT(user_id, topic) DO UPDATE SET
    mention_count = mention_count + 1,
    relevance_score = MIN(relevance_score + ?, ?),
    last_engaged = excluded.last_engaged,
    context = CASE WHEN excluded.context = '' THEN context ELSE excluded.context END
RETURNING topic, relevance_score, mention_count, first_mentioned, last_engaged, context
"""

_INTEREST_COLUMNS = (
    "topic, relevance_score, mention_count, first_mentioned, last_engaged, context"
)

_SPECIALIST_COLUMNS = (
    "id, name, specialty, sub_specialty, experience_years, rating, "
    "verification_status, verification_level, verification_date, languages, "
    "consultation_types, response_time_bucket, is_active, is_online"
)

_CONTENT_COLUMNS = (
    "id, title, author_name, specialty, topics, published_at, "
    "views, likes, shares, comments, is_verified_author"
)


def _directory_order(online_first: bool) -> str:
    order = "rating DESC, experience_years DESC, id"
    return f"is_online DESC, {order}" if online_first else order


def decayed_interest_score(interest: UserInterest, now: datetime) -> int:
    """Score an interest by recency and mention frequency.

    Args:
        interest: Stored interest.
        now: Reference time.

    Returns:
        round(0.4 x recency + 0.6 x frequency), both components on 0..100.
    """
    days = days_between(interest.last_engaged, now)
    recency = max(0.0, RECENCY_HORIZON_DAYS - days)
    frequency = min(interest.mention_count * FREQUENCY_POINTS_PER_MENTION, MAX_INTEREST_SCORE)
    return round_half_up(RECENCY_WEIGHT * recency + FREQUENCY_WEIGHT * frequency)


class HealthStore:
    """SQLite store for per-user interests, specialists and content.

    Uses WAL mode and applies schema migrations on connect. Every write
    runs in a timed transaction.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._conn: sqlite3.Connection | None = None
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_STORE, db_path=str(self._db_path))

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open the database and apply migrations.

        Creates the database file and parent directories if needed.
        """
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._log.info("connecting_to_database")

        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA busy_timeout=5000")

        manager = MigrationManager(self._conn)
        old_version = manager.get_current_version()
        applied = manager.apply_migrations()
        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "HealthStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        """Return the connection.

        Raises:
            StoreConnectionError: If not connected.
        """
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Generator[TransactionContext]:
        """Run a block in a transaction with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            Transaction context with timing information.
        """
        conn = self._ensure_connected()
        tx_id = str(uuid.uuid4())[:8]
        start_ns = time.perf_counter_ns()
        ctx = TransactionContext(tx_id=tx_id, start_time_ns=start_ns, operation=operation)

        try:
            yield ctx
            conn.commit()
        except Exception:
            conn.rollback()
            self._log.error(
                "transaction_failed",
                tx_id=tx_id,
                op=operation,
                duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
            )
            raise

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_tx_duration(duration_ms)
        self._log.debug(
            "transaction_complete",
            tx_id=tx_id,
            op=operation,
            affected_rows=ctx.affected_rows,
            duration_ms=round(duration_ms, 2),
        )

    # ===== User Interests =====

    def upsert_interest(
        self,
        user_id: str,
        topic: str,
        context: str = "",
        now: datetime | None = None,
    ) -> InterestUpsertResult:
        """Record a mention of a topic by a user.

        A first mention creates the interest with score 50 and one
        mention. A repeat mention adds one mention and 10 points (clamped
        to 100), refreshes ``last_engaged`` and replaces the context when
        a new one is given. The whole update is a single SQL statement,
        so concurrent mentions of the same topic are never lost.

        Args:
            user_id: User identifier.
            topic: Topic text; normalized before storage.
            context: Text around the mention; truncated to 100 characters.
            now: Mention time. Defaults to now.

        Returns:
            Result with the event type and the stored interest.

        Raises:
            ValueError: If user_id or topic is empty.
        """
        if not user_id.strip():
            msg = "user_id must be a non-empty string"
            raise ValueError(msg)
        normalized = normalize_topic(topic)
        mentioned_at = ensure_utc(now or utc_now()).isoformat()
        snippet = (context or "").strip()[:MAX_CONTEXT_LENGTH]

        with self._transaction("upsert_interest") as ctx:
            conn = self._ensure_connected()
            row = conn.execute(
                _UPSERT_INTEREST_SQL,
                (
                    user_id,
                    normalized,
                    NEW_INTEREST_SCORE,
                    mentioned_at,
                    mentioned_at,
                    snippet,
                    MENTION_SCORE_INCREMENT,
                    MAX_INTEREST_SCORE,
                ),
            ).fetchall()[0]
            ctx.add_affected_rows(1)

        interest = self._row_to_interest(row)
        created = interest.mention_count == 1
        self._metrics.record_interest(created=created)
        event_type = InterestEventType.NEW if created else InterestEventType.UPDATED
        self._log.info(
            "interest_upserted",
            user_id=user_id,
            topic=normalized,
            event_type=event_type.value,
            mention_count=interest.mention_count,
        )
        return InterestUpsertResult(event_type=event_type, interest=interest)

    def get_interest(self, user_id: str, topic: str) -> UserInterest | None:
        """Get one interest by user and topic.

        Args:
            user_id: User identifier.
            topic: Topic text (normalized before lookup).

        Returns:
            The interest, or None if not recorded.
        """
        conn = self._ensure_connected()
        row = conn.execute(
            f"SELECT {_INTEREST_COLUMNS} FROM user_interests WHERE user_id = ? AND topic = ?",
            (user_id, normalize_topic(topic)),
        ).fetchone()
        return self._row_to_interest(row) if row else None

    def get_interests(self, user_id: str) -> list[UserInterest]:
        """Get all interests of a user, most recently engaged first.

        Args:
            user_id: User identifier.

        Returns:
            Stored interests.
        """
        conn = self._ensure_connected()
        rows = conn.execute(
            f"SELECT {_INTEREST_COLUMNS} FROM user_interests "
            "WHERE user_id = ? ORDER BY last_engaged DESC, topic",
            (user_id,),
        ).fetchall()
        return [self._row_to_interest(row) for row in rows]

    def get_top_interests(
        self,
        user_id: str,
        limit: int = DEFAULT_TOP_INTERESTS,
        now: datetime | None = None,
    ) -> list[UserInterest]:
        """Get a user's strongest interests under recency decay.

        Args:
            user_id: User identifier.
            limit: Maximum interests to return.
            now: Reference time. Defaults to now.

        Returns:
            Interests carrying their decayed score as ``relevance_score``,
            strongest first.

        Raises:
            ValueError: If limit is less than 1.
        """
        if limit < 1:
            msg = f"limit must be a positive integer, got {limit!r}"
            raise ValueError(msg)
        reference = now or utc_now()
        decayed = [
            interest.model_copy(
                update={"relevance_score": float(decayed_interest_score(interest, reference))}
            )
            for interest in self.get_interests(user_id)
        ]
        decayed.sort(key=lambda i: i.relevance_score, reverse=True)
        return decayed[:limit]

    @staticmethod
    def _row_to_interest(row: sqlite3.Row) -> UserInterest:
        return UserInterest(
            topic=row["topic"],
            relevance_score=row["relevance_score"],
            mention_count=row["mention_count"],
            first_mentioned=datetime.fromisoformat(row["first_mentioned"]),
            last_engaged=datetime.fromisoformat(row["last_engaged"]),
            context=row["context"],
        )

    # ===== Specialist Directory =====

    def save_specialist(self, specialist: SpecialistCandidate) -> None:
        """Insert or replace a specialist record.

        Args:
            specialist: Specialist to store.
        """
        with self._transaction("save_specialist") as ctx:
            conn = self._ensure_connected()
            conn.execute(
                f"INSERT OR REPLACE INTO specialists ({_SPECIALIST_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    specialist.id,
                    specialist.name,
                    specialist.specialty,
                    specialist.sub_specialty,
                    specialist.experience_years,
                    specialist.rating,
                    specialist.verification_status.value
                    if specialist.verification_status
                    else None,
                    specialist.verification_level.value
                    if specialist.verification_level
                    else None,
                    specialist.verification_date.isoformat()
                    if specialist.verification_date
                    else None,
                    json.dumps(sorted(specialist.languages)),
                    json.dumps(sorted(specialist.consultation_types)),
                    specialist.response_time_bucket,
                    int(specialist.is_active),
                    int(specialist.is_online),
                ),
            )
            ctx.add_affected_rows(1)
        self._metrics.record_specialist_saved()

    def get_specialist(self, specialist_id: str) -> SpecialistCandidate | None:
        """Get a specialist by ID.

        Args:
            specialist_id: Specialist identifier.

        Returns:
            The specialist, or None if not found.
        """
        conn = self._ensure_connected()
        row = conn.execute(
            f"SELECT {_SPECIALIST_COLUMNS} FROM specialists WHERE id = ?",
            (specialist_id,),
        ).fetchone()
        return self._row_to_specialist(row) if row else None

    def find_specialists(
        self, specialty: str, limit: int, *, online_first: bool = False
    ) -> list[SpecialistCandidate]:
        """Find active specialists matching a specialty.

        Matching is case-insensitive containment in either direction
        against the specialty or sub-specialty. Blank specialties never
        match.

        Args:
            specialty: Requested specialty.
            limit: Maximum candidates.
            online_first: Put online specialists first.

        Returns:
            Candidates ordered by rating, then experience.
        """
        wanted = specialty.strip().lower()
        if not wanted:
            return []
        conn = self._ensure_connected()
        rows = conn.execute(
            f"SELECT {_SPECIALIST_COLUMNS} FROM specialists "
            "WHERE is_active = 1 AND (("
            "trim(specialty) != '' AND (instr(lower(specialty), ?) > 0 "
            "OR instr(?, lower(trim(specialty))) > 0)) "
            "OR (sub_specialty IS NOT NULL AND trim(sub_specialty) != '' AND ("
            "instr(lower(sub_specialty), ?) > 0 "
            "OR instr(?, lower(trim(sub_specialty))) > 0))) "
            f"ORDER BY {_directory_order(online_first)} LIMIT ?",
            (wanted, wanted, wanted, wanted, limit),
        ).fetchall()
        return [self._row_to_specialist(row) for row in rows]

    def find_general_specialists(
        self,
        limit: int,
        patterns: Sequence[str] | None = None,
        *,
        online_first: bool = False,
    ) -> list[SpecialistCandidate]:
        """Find active specialists from the general-physician pool.

        Args:
            limit: Maximum candidates.
            patterns: Specialty substrings defining the pool.
            online_first: Put online specialists first.

        Returns:
            Candidates ordered by rating, then experience.
        """
        terms = [p.strip().lower() for p in (patterns or DEFAULT_GENERAL_POOL) if p.strip()]
        if not terms:
            return []
        clause = " OR ".join("instr(lower(specialty), ?) > 0" for _ in terms)
        conn = self._ensure_connected()
        rows = conn.execute(
            f"SELECT {_SPECIALIST_COLUMNS} FROM specialists "
            f"WHERE is_active = 1 AND ({clause}) "
            f"ORDER BY {_directory_order(online_first)} LIMIT ?",
            (*terms, limit),
        ).fetchall()
        return [self._row_to_specialist(row) for row in rows]

    @staticmethod
    def _row_to_specialist(row: sqlite3.Row) -> SpecialistCandidate:
        return SpecialistCandidate(
            id=row["id"],
            name=row["name"],
            specialty=row["specialty"],
            sub_specialty=row["sub_specialty"],
            experience_years=row["experience_years"],
            rating=row["rating"],
            verification_status=row["verification_status"],
            verification_level=row["verification_level"],
            verification_date=(
                datetime.fromisoformat(row["verification_date"])
                if row["verification_date"]
                else None
            ),
            languages=json.loads(row["languages"]),
            consultation_types=json.loads(row["consultation_types"]),
            response_time_bucket=row["response_time_bucket"],
            is_active=bool(row["is_active"]),
            is_online=bool(row["is_online"]),
        )

    # ===== Content Catalogue =====

    def save_content(self, content: ContentItem) -> None:
        """Insert or replace a content item.

        Args:
            content: Content to store.
        """
        with self._transaction("save_content") as ctx:
            conn = self._ensure_connected()
            conn.execute(
                f"INSERT OR REPLACE INTO content_items ({_CONTENT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    content.id,
                    content.title,
                    content.author_name,
                    content.specialty,
                    json.dumps(list(content.topics)),
                    content.published_at.isoformat(),
                    content.engagement.views,
                    content.engagement.likes,
                    content.engagement.shares,
                    content.engagement.comments,
                    int(content.is_verified_author),
                ),
            )
            ctx.add_affected_rows(1)
        self._metrics.record_content_saved()

    def list_content(self, limit: int = DEFAULT_CONTENT_LIMIT) -> list[ContentItem]:
        """List content, newest first.

        Args:
            limit: Maximum items.

        Returns:
            Content items ordered by publication time, descending.
        """
        conn = self._ensure_connected()
        rows = conn.execute(
            f"SELECT {_CONTENT_COLUMNS} FROM content_items "
            "ORDER BY published_at DESC, id LIMIT ?",
            (limit,),
        ).fetchall()
        return [
            ContentItem(
                id=row["id"],
                title=row["title"],
                author_name=row["author_name"],
                specialty=row["specialty"],
                topics=json.loads(row["topics"]),
                published_at=datetime.fromisoformat(row["published_at"]),
                engagement=Engagement(
                    views=row["views"],
                    likes=row["likes"],
                    shares=row["shares"],
                    comments=row["comments"],
                ),
                is_verified_author=bool(row["is_verified_author"]),
            )
            for row in rows
        ]

    # ===== Statistics =====

    def get_stats(self) -> dict[str, int]:
        """Get row counts per table.

        Returns:
            Dictionary of statistics.
        """
        conn = self._ensure_connected()
        return {
            "interests": conn.execute("SELECT COUNT(*) FROM user_interests").fetchone()[0],
            "users": conn.execute(
                "SELECT COUNT(DISTINCT user_id) FROM user_interests"
            ).fetchone()[0],
            "specialists": conn.execute("SELECT COUNT(*) FROM specialists").fetchone()[0],
            "active_specialists": conn.execute(
                "SELECT COUNT(*) FROM specialists WHERE is_active = 1"
            ).fetchone()[0],
            "content_items": conn.execute("SELECT COUNT(*) FROM content_items").fetchone()[0],
        }


def record_context_topics(
    store: HealthStore,
    user_id: str,
    context: RecommendationContext,
    now: datetime | None = None,
) -> list[InterestUpsertResult]:
    """Store the symptoms and health topics of an analyzed conversation.

    Args:
        store: Connected store.
        user_id: User identifier.
        context: Analysis result.
        now: Mention time. Defaults to now.

    Returns:
        One upsert result per distinct topic, in context order.
    """
    results: list[InterestUpsertResult] = []
    seen: set[str] = set()
    for phrase in (*context.key_symptoms, *context.health_topics):
        topic = " ".join(phrase.split()).lower()
        if not topic or topic in seen:
            continue
        seen.add(topic)
        results.append(
            store.upsert_interest(
                user_id, topic, context=context.recommended_specialty, now=now
            )
        )
    return results
