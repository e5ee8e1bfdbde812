"""Constants for the configuration module."""

# Log component names
COMPONENT_CONFIG = "config"
COMPONENT_CLI = "cli"
COMPONENT_FEED = "feed"
COMPONENT_SPECIALISTS = "specialists"
COMPONENT_TOPICS = "topics"
COMPONENT_STORE = "store"
COMPONENT_LLM = "llm"

# Default file names
DEFAULT_SCORING_CONFIG = "scoring.yaml"
DEFAULT_DB_PATH = "health_match.db"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
