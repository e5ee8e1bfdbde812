"""Integration tests for the health-match CLI."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner

from src.cli.health_match import cli


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "GEMINI_API_KEY",
        "HEALTH_MATCH_DB_PATH",
        "HEALTH_MATCH_SCORING_CONFIG",
        "TOPIC_MATCH_STRATEGY",
        "SEMANTIC_MATCH_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> str:
    return str(tmp_path / "data" / "health.db")


@pytest.fixture
def loaded_db(runner: CliRunner, db: str, tmp_path: Path) -> str:
    """Database with specialists and content loaded through the CLI."""
    now = datetime.now(UTC)
    specialists = [
        {
            "id": "cardio-verified",
            "name": "Dr. Verified",
            "specialty": "Cardiology",
            "experience_years": 15,
            "rating": 4.8,
            "verification_status": "verified",
            "verification_level": "expert",
            "verification_date": (now - timedelta(days=5)).isoformat(),
            "languages": ["English"],
        },
        {
            "id": "cardio-unverified",
            "name": "Dr. Unverified",
            "specialty": "Cardiology",
            "experience_years": 20,
            "rating": 5.0,
        },
    ]
    content = [
        {
            "id": "sleep-guide",
            "title": "Better sleep",
            "topics": ["sleep hygiene"],
            "published_at": (now - timedelta(days=1)).isoformat(),
            "engagement": {"likes": 10},
        },
        {
            "id": "heart-health",
            "title": "Cardiovascular wellness",
            "topics": ["cardiovascular wellness"],
            "published_at": (now - timedelta(days=2)).isoformat(),
        },
    ]
    specialists_path = tmp_path / "specialists.json"
    specialists_path.write_text(json.dumps(specialists))
    content_path = tmp_path / "content.json"
    content_path.write_text(json.dumps(content))

    result = runner.invoke(
        cli,
        ["load-data", "--db", db, "--specialists", str(specialists_path), "--content", str(content_path)],
    )
    assert result.exit_code == 0, result.output
    assert "Loaded 2 specialists and 2 content items" in result.output
    return db


class TestDatabaseCommands:
    """Tests for init-db, load-data and db-stats."""

    def test_init_db_creates_file(self, runner: CliRunner, db: str) -> None:
        """init-db creates the database and its directory."""
        result = runner.invoke(cli, ["init-db", "--db", db])

        assert result.exit_code == 0, result.output
        assert Path(db).exists()

    def test_db_stats_after_load(self, runner: CliRunner, loaded_db: str) -> None:
        """Row counts reflect the loaded data."""
        result = runner.invoke(cli, ["db-stats", "--db", loaded_db, "--json"])

        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        assert stats["specialists"] == 2
        assert stats["content_items"] == 2
        assert stats["interests"] == 0

    def test_load_data_rejects_invalid_rows(
        self, runner: CliRunner, db: str, tmp_path: Path
    ) -> None:
        """Invalid input is reported and nothing is written."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps([{"id": "x", "specialty": "Cardiology", "rating": 9}]))

        result = runner.invoke(cli, ["load-data", "--db", db, "--specialists", str(bad)])

        assert result.exit_code == 1
        assert "Invalid input data" in result.output
        assert not Path(db).exists()


class TestInterestCommands:
    """Tests for add-interest and top-interests."""

    def test_add_interest_new_then_updated(self, runner: CliRunner, db: str) -> None:
        """Repeat mentions update the stored interest."""
        first = runner.invoke(cli, ["add-interest", "--db", db, "--user", "u1", "--topic", "Sleep"])
        second = runner.invoke(
            cli, ["add-interest", "--db", db, "--user", "u1", "--topic", "sleep", "--context", "again"]
        )

        assert first.exit_code == 0, first.output
        assert "NEW: sleep (score 50, mentions 1)" in first.output
        assert "UPDATED: sleep (score 60, mentions 2)" in second.output

    def test_add_interest_blank_topic_fails(self, runner: CliRunner, db: str) -> None:
        """A blank topic is rejected."""
        result = runner.invoke(cli, ["add-interest", "--db", db, "--user", "u1", "--topic", "  "])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_top_interests_json(self, runner: CliRunner, db: str) -> None:
        """Top interests are listed strongest first."""
        for topic in ("sleep", "sleep", "diet"):
            runner.invoke(cli, ["add-interest", "--db", db, "--user", "u1", "--topic", topic])

        result = runner.invoke(cli, ["top-interests", "--db", db, "--user", "u1", "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert [item["topic"] for item in payload] == ["sleep", "diet"]
        assert payload[0]["mention_count"] == 2


class TestRecommendCommand:
    """Tests for the recommend command."""

    def test_specialty_json(self, runner: CliRunner, loaded_db: str) -> None:
        """The verified specialist is ranked first."""
        result = runner.invoke(
            cli, ["recommend", "--db", loaded_db, "--specialty", "Cardiology", "--json"]
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert [r["candidateId"] for r in payload["results"]] == [
            "cardio-verified",
            "cardio-unverified",
        ]
        assert payload["verificationImpact"] is True
        assert payload["noMatch"] is False

    def test_conversation_records_interests(self, runner: CliRunner, loaded_db: str) -> None:
        """Heuristic analysis drives the recommendation and interest tracking."""
        result = runner.invoke(
            cli,
            [
                "recommend",
                "--db",
                loaded_db,
                "--conversation",
                "I have chest pain after running",
                "--user",
                "u1",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Specialty: Cardiology (severity urgent" in result.output
        assert "1. Dr. Verified [Cardiology]" in result.output

        interests = runner.invoke(cli, ["top-interests", "--db", loaded_db, "--user", "u1"])
        assert "pain" in interests.output

    def test_no_match(self, runner: CliRunner, db: str) -> None:
        """An empty directory reports no match."""
        result = runner.invoke(cli, ["recommend", "--db", db, "--specialty", "Neurology"])

        assert result.exit_code == 0, result.output
        assert "No matching specialists found" in result.output

    def test_requires_input(self, runner: CliRunner, db: str) -> None:
        """Either a conversation or a specialty is required."""
        result = runner.invoke(cli, ["recommend", "--db", db])

        assert result.exit_code == 1
        assert "provide --conversation or --specialty" in result.output

    def test_blank_specialty_reports_error(self, runner: CliRunner, db: str) -> None:
        """A blank specialty is a usage error, not a traceback."""
        result = runner.invoke(cli, ["recommend", "--db", db, "--specialty", "  "])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid --specialty" in result.output


class TestFeedCommand:
    """Tests for the feed command."""

    def test_personalized_feed_with_topic_match(self, runner: CliRunner, loaded_db: str) -> None:
        """Interests personalize the feed; keyword matching annotates it."""
        runner.invoke(cli, ["add-interest", "--db", loaded_db, "--user", "u1", "--topic", "heart"])
        runner.invoke(cli, ["add-interest", "--db", loaded_db, "--user", "u1", "--topic", "sleep"])

        result = runner.invoke(
            cli, ["feed", "--db", loaded_db, "--user", "u1", "--topic-match", "--json"]
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["personalizationLevel"] == "high"
        assert payload["userTopicsCount"] == 2
        scores = {e["contentId"]: e["topicMatchScore"] for e in payload["feed"]}
        assert scores == {"sleep-guide": 0.2, "heart-health": 0.2}

    def test_baseline_feed_text(self, runner: CliRunner, loaded_db: str) -> None:
        """Users without interests get the baseline feed."""
        result = runner.invoke(cli, ["feed", "--db", loaded_db, "--user", "nobody"])

        assert result.exit_code == 0, result.output
        assert "Feed for nobody (baseline, 0 topics)" in result.output
        assert "Better sleep" in result.output


class TestValidateConfigCommand:
    """Tests for validate-config."""

    def test_valid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """A valid file prints its summary."""
        path = tmp_path / "scoring.yaml"
        path.write_text("topic_matching:\n  strategy: keyword\n")

        result = runner.invoke(cli, ["validate-config", "--config", str(path)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid!" in result.output
        assert "Topic match strategy: keyword" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Errors are printed with hints."""
        path = tmp_path / "scoring.yaml"
        path.write_text("ranking:\n  overfetch_factor: 0\n")

        result = runner.invoke(cli, ["validate-config", "--config", str(path)])

        assert result.exit_code == 1
        assert "ranking.overfetch_factor" in result.output
        assert "Hint: Must be a whole number of at least 1." in result.output
