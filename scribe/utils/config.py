"""
Configuration Management
========================

Centralized configuration for the relay. All environment variables are
read and typed here so the rest of the codebase never calls os.getenv().

Required vs optional:
- Slack tokens are only required when the Slack app is started
  (see load_slack_config). The core agent can run against any channel.
- The OpenAI key is loaded as optional and checked by the agent at init,
  so a missing key surfaces as a ConfigurationError at the right moment.
- The Tavily key is optional. Without it web search degrades to a
  structured error payload.

Usage:
    from scribe.utils.config import get_config

    config = get_config()
    print(config.openai.model)
    print(config.agent.flush_interval_ms)
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


def _required(name: str) -> str:
    """
    Get a required environment variable.

    Args:
        name: The environment variable name

    Returns:
        The value of the environment variable

    Raises:
        ConfigurationError: If the variable is not set
    """
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(
            f"Missing required environment variable: {name}\n"
            f"Please ensure {name} is set in your .env file."
        )
    return value


def _optional(name: str, default: str) -> str:
    """Get an optional environment variable with a default."""
    return os.getenv(name, default)


def _optional_int(name: str, default: int) -> int:
    """
    Get an optional integer environment variable.

    Args:
        name: The environment variable name
        default: Default value if not set or invalid

    Returns:
        The integer value or the default
    """
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Warning: {name} is not a valid integer, using default: {default}")
        return default


def _optional_float(name: str, default: float) -> float:
    """Get an optional float environment variable, falling back on bad input."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        print(f"Warning: {name} is not a valid number, using default: {default}")
        return default


# ==============================================================================
# Configuration Dataclasses
# ==============================================================================

@dataclass(frozen=True)
class SlackConfig:
    """Slack API configuration."""
    bot_token: str      # xoxb-... token for bot operations
    app_token: str      # xapp-... token for Socket Mode
    signing_secret: str # For verifying Slack requests


@dataclass(frozen=True)
class OpenAIConfig:
    """Language-model provider configuration."""
    api_key: str | None    # sk-... API key, validated at agent init
    model: str             # Model used to stream replies
    decision_model: str    # Model used to classify search need
    temperature: float     # Sampling temperature for replies


@dataclass(frozen=True)
class SearchConfig:
    """Tavily web search configuration (optional)."""
    api_key: str | None
    url: str
    search_depth: str
    max_results: int
    timeout_seconds: float


@dataclass(frozen=True)
class AgentConfig:
    """Agent lifecycle and streaming configuration."""
    flush_interval_ms: int            # Min delay between partial message updates
    max_turns: int                    # Conversation bound, 0 = unbounded
    idle_timeout_minutes: int         # Idle agents are disposed after this
    cleanup_interval_seconds: int     # How often the registry checks for idle agents


@dataclass(frozen=True)
class Config:
    """
    Root configuration object.

    Access via:
        config = get_config()
        config.openai.api_key
        config.search.max_results
        config.agent.flush_interval_ms
    """
    openai: OpenAIConfig
    search: SearchConfig
    agent: AgentConfig
    log_level: str


def load_config() -> Config:
    """
    Load all configuration from environment.

    Loads the .env file first, then applies defaults for every optional
    value. Nothing here is fatal: credential checks happen where the
    credential is needed.

    Returns:
        Config: The loaded configuration
    """
    load_dotenv()

    return Config(
        openai=OpenAIConfig(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            model=_optional("OPENAI_MODEL", "gpt-4o"),
            decision_model=_optional("OPENAI_DECISION_MODEL", "gpt-4o-mini"),
            temperature=_optional_float("OPENAI_TEMPERATURE", 0.7),
        ),
        search=SearchConfig(
            api_key=os.getenv("TAVILY_API_KEY") or None,
            url=_optional("TAVILY_URL", "https://api.tavily.com/search"),
            search_depth=_optional("TAVILY_SEARCH_DEPTH", "advanced"),
            max_results=_optional_int("TAVILY_MAX_RESULTS", 5),
            timeout_seconds=_optional_float("TAVILY_TIMEOUT_SECONDS", 30.0),
        ),
        agent=AgentConfig(
            flush_interval_ms=_optional_int("FLUSH_INTERVAL_MS", 1000),
            max_turns=_optional_int("CONVERSATION_MAX_TURNS", 0),
            idle_timeout_minutes=_optional_int("AGENT_IDLE_TIMEOUT_MINUTES", 30),
            cleanup_interval_seconds=_optional_int("AGENT_CLEANUP_INTERVAL_SECONDS", 60),
        ),
        log_level=_optional("LOG_LEVEL", "info"),
    )


def load_slack_config() -> SlackConfig:
    """
    Load the Slack tokens needed to run the Bolt app.

    Raises:
        ConfigurationError: If any token is missing
    """
    load_dotenv()

    return SlackConfig(
        bot_token=_required("SLACK_BOT_TOKEN"),
        app_token=_required("SLACK_APP_TOKEN"),
        signing_secret=_required("SLACK_SIGNING_SECRET"),
    )


# ==============================================================================
# Singleton
# ==============================================================================

_config_instance: Config | None = None


def get_config() -> Config:
    """
    Get the singleton configuration instance.

    Loaded on first access and cached. Components that accept an explicit
    Config (the agent, the search client) only fall back to this when the
    caller did not inject one.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def is_search_configured(config: Config | None = None) -> bool:
    """Check if Tavily web search has a credential."""
    config = config or get_config()
    return config.search.api_key is not None
