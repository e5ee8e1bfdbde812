"""Unit tests for the SQLite health store."""

from collections.abc import Generator
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.feed.models import ContentItem, Engagement
from src.specialists.models import (
    RecommendationContext,
    SpecialistCandidate,
    VerificationLevel,
    VerificationStatus,
)
from src.store import (
    ConnectionError as StoreConnectionError,
)
from src.store import (
    HealthStore,
    InterestEventType,
    StoreMetrics,
    UserInterest,
    decayed_interest_score,
    record_context_topics,
)
from tests.helpers.time import FIXED_NOW, days_ago


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    StoreMetrics.reset()


@pytest.fixture
def store(tmp_path: Path) -> Generator[HealthStore]:
    """Create a connected store in a temp directory."""
    with HealthStore(tmp_path / "nested" / "health.db") as db:
        yield db


def _specialist(
    specialist_id: str,
    specialty: str,
    rating: float = 4.0,
    experience_years: float = 5,
    sub_specialty: str | None = None,
    is_active: bool = True,
    is_online: bool = False,
) -> SpecialistCandidate:
    return SpecialistCandidate(
        id=specialist_id,
        specialty=specialty,
        sub_specialty=sub_specialty,
        rating=rating,
        experience_years=experience_years,
        is_active=is_active,
        is_online=is_online,
    )


class TestConnection:
    """Tests for connection handling."""

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Should create the database file and its directories."""
        db_path = tmp_path / "a" / "b" / "health.db"
        with HealthStore(db_path) as db:
            assert db.is_connected
        assert db_path.exists()
        assert not db.is_connected

    def test_operations_require_connection(self, tmp_path: Path) -> None:
        """Should raise before connect()."""
        db = HealthStore(str(tmp_path / "health.db"))
        with pytest.raises(StoreConnectionError):
            db.upsert_interest("u1", "sleep")
        with pytest.raises(StoreConnectionError):
            db.get_stats()

    def test_reopen_keeps_data(self, tmp_path: Path) -> None:
        """Data and schema survive a reconnect."""
        db_path = tmp_path / "health.db"
        with HealthStore(db_path) as db:
            db.upsert_interest("u1", "sleep", now=FIXED_NOW)
        with HealthStore(db_path) as db:
            assert db.get_interest("u1", "Sleep") is not None


class TestUpsertInterest:
    """Tests for HealthStore.upsert_interest."""

    def test_first_mention_creates_interest(self, store: HealthStore) -> None:
        """A new topic starts at 50 with one mention."""
        result = store.upsert_interest("u1", "  Blood   Pressure ", "asked about bp", now=FIXED_NOW)

        assert result.event_type == InterestEventType.NEW
        interest = result.interest
        assert interest.topic == "blood pressure"
        assert interest.relevance_score == 50
        assert interest.mention_count == 1
        assert interest.first_mentioned == FIXED_NOW
        assert interest.last_engaged == FIXED_NOW
        assert interest.context == "asked about bp"

    def test_repeat_mention_updates_interest(self, store: HealthStore) -> None:
        """A repeat adds 10 points and a mention and keeps first_mentioned."""
        store.upsert_interest("u1", "sleep", "first", now=days_ago(3))
        result = store.upsert_interest("u1", "SLEEP", "second", now=FIXED_NOW)

        assert result.event_type == InterestEventType.UPDATED
        interest = result.interest
        assert interest.relevance_score == 60
        assert interest.mention_count == 2
        assert interest.first_mentioned == days_ago(3)
        assert interest.last_engaged == FIXED_NOW
        assert interest.context == "second"

    def test_score_clamped_at_100(self, store: HealthStore) -> None:
        """Scores never exceed 100 while mentions keep counting."""
        for _ in range(8):
            result = store.upsert_interest("u1", "sleep", now=FIXED_NOW)

        assert result.interest.relevance_score == 100
        assert result.interest.mention_count == 8

    def test_empty_context_keeps_previous(self, store: HealthStore) -> None:
        """Only a non-empty context replaces the stored one."""
        store.upsert_interest("u1", "sleep", "trouble sleeping", now=FIXED_NOW)
        result = store.upsert_interest("u1", "sleep", "   ", now=FIXED_NOW)
        assert result.interest.context == "trouble sleeping"

    def test_context_truncated(self, store: HealthStore) -> None:
        """Context keeps its first 100 characters."""
        result = store.upsert_interest("u1", "sleep", "x" * 150, now=FIXED_NOW)
        assert result.interest.context == "x" * 100

    def test_users_are_isolated(self, store: HealthStore) -> None:
        """The same topic is tracked separately per user."""
        store.upsert_interest("u1", "sleep", now=FIXED_NOW)
        result = store.upsert_interest("u2", "sleep", now=FIXED_NOW)
        assert result.event_type == InterestEventType.NEW
        assert store.get_stats()["users"] == 2

    @pytest.mark.parametrize(("user_id", "topic"), [("", "sleep"), ("  ", "sleep"), ("u1", " ")])
    def test_invalid_input_raises(self, store: HealthStore, user_id: str, topic: str) -> None:
        """Blank user ids and topics are rejected."""
        with pytest.raises(ValueError):
            store.upsert_interest(user_id, topic)

    def test_metrics_recorded(self, store: HealthStore) -> None:
        """Creates and updates are counted separately."""
        store.upsert_interest("u1", "sleep", now=FIXED_NOW)
        store.upsert_interest("u1", "sleep", now=FIXED_NOW)
        metrics = StoreMetrics.get_instance()
        assert metrics.interests_created_total == 1
        assert metrics.interests_updated_total == 1
        assert metrics.db_tx_count >= 2


class TestTopInterests:
    """Tests for decayed interest ranking."""

    @pytest.mark.parametrize(
        ("mentions", "age_days", "expected"),
        [
            (1, 10, 42),
            (5, 50, 50),
            (10, 0, 100),
            (3, 120, 18),
            (20, 0, 100),
        ],
    )
    def test_decayed_score(self, mentions: int, age_days: float, expected: int) -> None:
        """0.4 x recency + 0.6 x frequency."""
        interest = UserInterest(
            topic="sleep", mention_count=mentions, last_engaged=days_ago(age_days)
        )
        assert decayed_interest_score(interest, FIXED_NOW) == expected

    def test_orders_by_decayed_score(self, store: HealthStore) -> None:
        """Frequent recent topics outrank stale ones."""
        for _ in range(3):
            store.upsert_interest("u1", "sleep", now=days_ago(1))
        store.upsert_interest("u1", "diet", now=days_ago(90))
        store.upsert_interest("u1", "stress", now=FIXED_NOW)

        top = store.get_top_interests("u1", limit=2, now=FIXED_NOW)

        assert [i.topic for i in top] == ["sleep", "stress"]
        # 0.4 x 99 + 0.6 x 30
        assert top[0].relevance_score == 58

    def test_unknown_user_has_no_interests(self, store: HealthStore) -> None:
        """An unknown user gets an empty list."""
        assert store.get_top_interests("nobody", now=FIXED_NOW) == []

    def test_invalid_limit(self, store: HealthStore) -> None:
        """Limit must be positive."""
        with pytest.raises(ValueError):
            store.get_top_interests("u1", limit=0)


class TestSpecialists:
    """Tests for the specialist directory."""

    def test_round_trip(self, store: HealthStore) -> None:
        """All fields survive storage."""
        specialist = SpecialistCandidate(
            id="s1",
            name="Dr. Rao",
            specialty="Cardiology",
            sub_specialty="Electrophysiology",
            experience_years=12,
            rating=4.6,
            verification_status=VerificationStatus.VERIFIED,
            verification_level=VerificationLevel.EXPERT,
            verification_date=days_ago(30),
            languages=["English", "Hindi"],
            consultation_types=["video", "chat"],
            response_time_bucket="< 30 mins",
            is_online=True,
        )
        store.save_specialist(specialist)

        loaded = store.get_specialist("s1")

        assert loaded is not None
        assert loaded.model_dump() == specialist.model_dump()
        assert store.get_specialist("missing") is None

    def test_find_matches_both_directions(self, store: HealthStore) -> None:
        """Either specialty may contain the other, case-insensitively."""
        store.save_specialist(_specialist("s1", "Cardiology"))
        store.save_specialist(_specialist("s2", "Dermatology"))
        store.save_specialist(_specialist("s3", "Internal Medicine", sub_specialty="cardiology"))

        assert {s.id for s in store.find_specialists("cardio", 10)} == {"s1", "s3"}
        assert [s.id for s in store.find_specialists("Pediatric Dermatology", 10)] == ["s2"]
        assert store.find_specialists("  ", 10) == []

    def test_find_orders_and_limits(self, store: HealthStore) -> None:
        """Rating first, then experience; inactive excluded."""
        store.save_specialist(_specialist("low", "Cardiology", rating=3.0))
        store.save_specialist(_specialist("senior", "Cardiology", rating=4.5, experience_years=20))
        store.save_specialist(_specialist("junior", "Cardiology", rating=4.5, experience_years=2))
        store.save_specialist(_specialist("gone", "Cardiology", rating=5.0, is_active=False))

        assert [s.id for s in store.find_specialists("Cardiology", 2)] == ["senior", "junior"]

    def test_general_pool(self, store: HealthStore) -> None:
        """The general pool matches general/physician/family by default."""
        store.save_specialist(_specialist("gp", "General Physician"))
        store.save_specialist(_specialist("fam", "Family Medicine", rating=4.5))
        store.save_specialist(_specialist("derm", "Dermatology"))

        assert [s.id for s in store.find_general_specialists(10)] == ["fam", "gp"]
        assert [s.id for s in store.find_general_specialists(10, ["derm"])] == ["derm"]

    def test_blank_specialty_never_matches(self, store: HealthStore) -> None:
        """A blank stored specialty must not join every specialty pool."""
        store.save_specialist(SpecialistCandidate.model_construct(id="blank", specialty=""))
        store.save_specialist(_specialist("gp", "General Practice"))

        assert store.find_specialists("Neurology", 15) == []
        assert [s.id for s in store.find_general_specialists(15)] == ["gp"]

    def test_blank_specialty_rejected_by_model(self) -> None:
        """Specialists need a non-blank specialty."""
        with pytest.raises(ValidationError):
            SpecialistCandidate(id="s1", specialty="   ")

    def test_online_first_ordering(self, store: HealthStore) -> None:
        """online_first puts online specialists ahead of higher ratings."""
        store.save_specialist(_specialist("top", "Cardiology", rating=5.0))
        store.save_specialist(_specialist("online", "Cardiology", rating=3.0, is_online=True))
        store.save_specialist(_specialist("gp-online", "General Practice", is_online=True))
        store.save_specialist(_specialist("gp", "General Practice", rating=5.0))

        assert [s.id for s in store.find_specialists("Cardiology", 1)] == ["top"]
        assert [s.id for s in store.find_specialists("Cardiology", 1, online_first=True)] == [
            "online"
        ]
        assert [s.id for s in store.find_general_specialists(2, online_first=True)] == [
            "gp-online",
            "gp",
        ]


class TestContent:
    """Tests for the content catalogue."""

    def test_newest_first(self, store: HealthStore) -> None:
        """Content is listed by publication time, descending."""
        old = ContentItem(id="old", topics=["sleep"], published_at=days_ago(5))
        new = ContentItem(
            id="new",
            title="Heart basics",
            topics=["heart", "Heart", "exercise"],
            published_at=days_ago(1),
            engagement=Engagement(views=100, likes=10, shares=2, comments=1),
            is_verified_author=True,
            author_name="Dr. Rao",
            specialty="Cardiology",
        )
        store.save_content(old)
        store.save_content(new)

        listed = store.list_content()

        assert [c.id for c in listed] == ["new", "old"]
        assert listed[0].model_dump() == new.model_dump()
        assert listed[0].topics == ("heart", "exercise")
        assert [c.id for c in store.list_content(limit=1)] == ["new"]


class TestRecordContextTopics:
    """Tests for record_context_topics."""

    def test_records_distinct_topics(self, store: HealthStore) -> None:
        """Symptoms and topics are stored once each."""
        context = RecommendationContext(
            recommended_specialty="Cardiology",
            key_symptoms=["Chest Pain", "chest  pain"],
            health_topics=["heart health"],
        )

        results = record_context_topics(store, "u1", context, now=FIXED_NOW)

        assert [r.interest.topic for r in results] == ["chest pain", "heart health"]
        assert all(r.interest.context == "Cardiology" for r in results)
        assert store.get_stats()["interests"] == 2
