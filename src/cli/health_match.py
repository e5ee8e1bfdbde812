"""CLI commands for the health-match ranking service."""

import json
import logging
import sys
import uuid
from pathlib import Path

import click
import structlog
from pydantic import TypeAdapter, ValidationError

from src.config.constants import COMPONENT_CLI, DEFAULT_SCORING_CONFIG
from src.config.error_hints import format_validation_error
from src.config.loader import ConfigValidationError, ScoringConfigLoader
from src.config.schemas.scoring import ScoringConfig
from src.feed.models import ContentItem
from src.feed.ranker import FeedRanker
from src.llm.analysis import ConversationAnalyzer
from src.llm.errors import LlmAuthError
from src.llm.factory import create_llm_client_from_settings
from src.llm.protocols import TextGenerationClient
from src.observability.logging import bind_request_context, configure_logging
from src.settings import AppSettings, get_settings
from src.specialists.models import RecommendationContext, Severity, SpecialistCandidate
from src.specialists.ranker import SpecialistRanker
from src.store.store import HealthStore, record_context_topics
from src.topics.matcher import TopicMatcher


logger = structlog.get_logger()

_SPECIALISTS_ADAPTER = TypeAdapter(list[SpecialistCandidate])
_CONTENT_ADAPTER = TypeAdapter(list[ContentItem])


def _setup(command: str, verbose: bool, user_id: str | None = None) -> AppSettings:
    """Configure console logging, bind request context and load settings.

    Args:
        command: Command name for the log context.
        verbose: Whether to log at DEBUG level.
        user_id: Optional user to bind to the request context.

    Returns:
        Application settings.
    """
    settings = get_settings()
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO, json_format=settings.log_json
    )
    bind_request_context(str(uuid.uuid4()), user_id)
    logger.bind(component=COMPONENT_CLI).debug("command_started", command=command)
    return settings


def _load_config(path: Path | None, settings: AppSettings) -> ScoringConfig:
    """Load scoring configuration, exit on validation failure.

    Args:
        path: Explicit config path; falls back to settings.
        settings: Application settings.

    Returns:
        Validated configuration with environment overrides applied.
    """
    loader = ScoringConfigLoader()
    try:
        config = loader.load(
            path or settings.scoring_config_path or Path(DEFAULT_SCORING_CONFIG)
        )
    except ConfigValidationError as exc:
        _print_validation_errors(exc.errors)
        sys.exit(1)
    return settings.apply_overrides(config)


def _print_validation_errors(errors: list[dict[str, str]]) -> None:
    click.echo("Configuration validation failed:", err=True)
    for error in errors:
        formatted = format_validation_error(
            location=error["loc"],
            message=error["msg"],
            error_type=error.get("type", "unknown"),
            include_hint=True,
        )
        click.echo(f"  - {formatted}", err=True)


def _llm_client(settings: AppSettings) -> TextGenerationClient | None:
    try:
        return create_llm_client_from_settings(settings)
    except LlmAuthError as exc:
        logger.warning("llm_client_unavailable", error=str(exc))
        return None


def _db_option(func: click.decorators.FC) -> click.decorators.FC:
    return click.option(
        "--db",
        "db_path",
        type=click.Path(path_type=Path),
        default=None,
        help="Path to SQLite database (default: HEALTH_MATCH_DB_PATH).",
    )(func)


def _config_option(func: click.decorators.FC) -> click.decorators.FC:
    return click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, path_type=Path),
        default=None,
        help="Path to scoring.yaml (default: ./scoring.yaml if present, else built-in values).",
    )(func)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Health-match: feed relevance and verification-aware specialist ranking."""


@cli.command("init-db")
@_db_option
def init_db(db_path: Path | None) -> None:
    """Create the database and apply schema migrations."""
    settings = _setup("init-db", verbose=False)
    with HealthStore(db_path or settings.db_path) as store:
        click.echo(f"Database ready: {store.db_path}")


@cli.command("load-data")
@_db_option
@click.option(
    "--specialists",
    "specialists_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="JSON file with a list of specialists.",
)
@click.option(
    "--content",
    "content_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="JSON file with a list of content items.",
)
def load_data(
    db_path: Path | None, specialists_path: Path | None, content_path: Path | None
) -> None:
    """Import specialists and content from JSON files."""
    settings = _setup("load-data", verbose=False)
    try:
        specialists = (
            _SPECIALISTS_ADAPTER.validate_json(specialists_path.read_bytes())
            if specialists_path
            else []
        )
        contents = (
            _CONTENT_ADAPTER.validate_json(content_path.read_bytes()) if content_path else []
        )
    except ValidationError as exc:
        click.echo(f"Invalid input data: {exc.error_count()} errors", err=True)
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"])
            click.echo(f"  - {loc}: {err['msg']}", err=True)
        sys.exit(1)

    with HealthStore(db_path or settings.db_path) as store:
        for specialist in specialists:
            store.save_specialist(specialist)
        for content in contents:
            store.save_content(content)

    click.echo(f"Loaded {len(specialists)} specialists and {len(contents)} content items")


@cli.command("add-interest")
@_db_option
@click.option("--user", "user_id", required=True, help="User identifier.")
@click.option("--topic", required=True, help="Topic mentioned by the user.")
@click.option("--context", default="", help="Text around the mention.")
def add_interest(db_path: Path | None, user_id: str, topic: str, context: str) -> None:
    """Record one mention of a topic for a user."""
    settings = _setup("add-interest", verbose=False, user_id=user_id)
    with HealthStore(db_path or settings.db_path) as store:
        try:
            result = store.upsert_interest(user_id, topic, context)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    interest = result.interest
    click.echo(
        f"{result.event_type.value}: {interest.topic} "
        f"(score {interest.relevance_score:g}, mentions {interest.mention_count})"
    )


@cli.command("top-interests")
@_db_option
@click.option("--user", "user_id", required=True, help="User identifier.")
@click.option("--limit", default=5, show_default=True, type=click.IntRange(min=1))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def top_interests(db_path: Path | None, user_id: str, limit: int, json_output: bool) -> None:
    """Show a user's strongest interests after recency decay."""
    settings = _setup("top-interests", verbose=False, user_id=user_id)
    with HealthStore(db_path or settings.db_path) as store:
        interests = store.get_top_interests(user_id, limit)

    if json_output:
        payload = [i.model_dump(mode="json") for i in interests]
        click.echo(json.dumps(payload, indent=2))
        return

    if not interests:
        click.echo(f"No interests recorded for {user_id}")
        return
    for interest in interests:
        click.echo(
            f"  {interest.relevance_score:>5.0f}  {interest.topic} "
            f"({interest.mention_count} mentions)"
        )


@cli.command()
@_db_option
@_config_option
@click.option("--conversation", default=None, help="Conversation text to analyze.")
@click.option("--specialty", default=None, help="Skip analysis and use this specialty.")
@click.option(
    "--severity",
    type=click.Choice([s.value for s in Severity]),
    default=Severity.ROUTINE.value,
    show_default=True,
    help="Severity used with --specialty.",
)
@click.option("--user", "user_id", default=None, help="Record analyzed topics for this user.")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Results to return.")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def recommend(  # noqa: PLR0913
    db_path: Path | None,
    config_path: Path | None,
    conversation: str | None,
    specialty: str | None,
    severity: str,
    user_id: str | None,
    limit: int | None,
    json_output: bool,
    verbose: bool,
) -> None:
    """Recommend specialists for a conversation or a specialty."""
    settings = _setup("recommend", verbose, user_id)
    config = _load_config(config_path, settings)

    if specialty is not None:
        try:
            context = RecommendationContext(
                recommended_specialty=specialty, severity=Severity(severity), confidence=1.0
            )
        except ValidationError as exc:
            click.echo(f"Invalid --specialty: {exc.errors()[0]['msg']}", err=True)
            sys.exit(1)
    elif conversation:
        context = ConversationAnalyzer(_llm_client(settings)).analyze(conversation)
    else:
        click.echo("Error: provide --conversation or --specialty", err=True)
        sys.exit(1)

    with HealthStore(db_path or settings.db_path) as store:
        if user_id:
            record_context_topics(store, user_id, context)
        result = SpecialistRanker(config=config).recommend(context, store, limit)

    if json_output:
        click.echo(json.dumps(result.to_wire(), indent=2))
        return

    click.echo(
        f"Specialty: {context.recommended_specialty} "
        f"(severity {context.severity.value}, confidence {context.confidence:.2f})"
    )
    if result.no_match:
        click.echo("No matching specialists found")
        return
    if result.fallback_used:
        click.echo("No specialists for this specialty; showing general physicians")
    for entry in result.results:
        badge = "verified" if entry.is_verified else "unverified"
        click.echo(
            f"  {entry.rank}. {entry.name or entry.candidate_id} [{entry.specialty}] "
            f"total {entry.total_score} (match {entry.match_score}, "
            f"boost {entry.verification_boost:+d}, {badge})"
        )
    if result.verification_impact:
        click.echo("Verification changed the ranking order")


@cli.command()
@_db_option
@_config_option
@click.option("--user", "user_id", required=True, help="User identifier.")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Entries to return.")
@click.option(
    "--topic-match/--no-topic-match",
    default=False,
    help="Annotate entries with topic matcher scores.",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def feed(  # noqa: PLR0913
    db_path: Path | None,
    config_path: Path | None,
    user_id: str,
    limit: int | None,
    topic_match: bool,
    json_output: bool,
    verbose: bool,
) -> None:
    """Show a personalized content feed for a user."""
    settings = _setup("feed", verbose, user_id)
    config = _load_config(config_path, settings)

    with HealthStore(db_path or settings.db_path) as store:
        interests = store.get_top_interests(user_id, limit=10)
        contents = store.list_content()

    matcher = (
        TopicMatcher(config.topic_matching, _llm_client(settings)) if topic_match else None
    )
    result = FeedRanker(config=config, topic_matcher=matcher).rank_feed(
        contents,
        user_topics=[i.topic for i in interests],
        user_interests=interests,
        limit=limit,
    )

    if json_output:
        click.echo(json.dumps(result.to_wire(), indent=2))
        return

    click.echo(
        f"Feed for {user_id} ({result.personalization_level}, "
        f"{result.user_topics_count} topics)"
    )
    for entry in result.feed:
        flags = " ".join(
            flag for flag, on in (("verified", entry.is_verified), ("new", entry.is_new)) if on
        )
        click.echo(
            f"  {entry.relevance_score:>3}  {entry.title or entry.content_id} "
            f"[{entry.match_percentage}% match] {flags}".rstrip()
        )


@cli.command("validate-config")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to scoring.yaml.",
)
def validate_config(config_path: Path) -> None:
    """Validate a scoring configuration file."""
    configure_logging(json_format=False)
    loader = ScoringConfigLoader()
    try:
        config = loader.load(config_path)
    except ConfigValidationError as exc:
        _print_validation_errors(exc.errors)
        sys.exit(1)

    click.echo("Configuration is valid!")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Topic match strategy: {config.topic_matching.strategy.value}")
    click.echo(f"  Checksum: {loader.checksum}")


@cli.command("db-stats")
@_db_option
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def db_stats(db_path: Path | None, json_output: bool) -> None:
    """Display database row counts."""
    settings = _setup("db-stats", verbose=False)
    with HealthStore(db_path or settings.db_path) as store:
        stats = store.get_stats()

    if json_output:
        click.echo(json.dumps(stats, indent=2))
        return
    click.echo("Health Store Statistics")
    click.echo("=" * 40)
    for table, count in sorted(stats.items()):
        click.echo(f"  {table}: {count}")


if __name__ == "__main__":
    cli()
