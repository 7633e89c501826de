"""Runtime configuration and .env loading.

WHY: The token and the two endpoint URLs come from the environment, but
the client and poller should never read os.environ themselves. Settings
is built once at startup and passed explicitly to every component.

HOW: python-dotenv loads the nearest .env above the working directory,
on import and again from cli.main. load_settings() reads the
environment, checks what the chosen subcommand needs, and returns a
frozen Settings dataclass. Module-level constants hold the fixed API
defaults.

RULES:
- API_TOKEN is always required
- TRANSCRIPT_URL is required for transcription, QUESTION_URL for questions
- Missing values raise ConfigurationError naming every missing variable
- POLL_INTERVAL overrides the default 10 second poll interval
- .env values never override variables already set in the environment
- LOG_LEVEL must name a logging level; anything else is a ConfigurationError
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from assembly_cli.errors import ConfigurationError


def load_env_file() -> bool:
    """Load the nearest .env, searching upward from the working directory.

    Returns True when a .env file was found and read.
    """
    return load_dotenv(find_dotenv(usecwd=True))


load_env_file()

# ---------------------------------------------------------------------------
# Fixed API defaults
# ---------------------------------------------------------------------------

DEFAULT_POLL_INTERVAL_S = 10.0
FINAL_MODEL = "basic"
HTTP_TIMEOUT_S = 60.0
HTTP_CONNECT_TIMEOUT_S = 30.0

ENV_API_TOKEN = "API_TOKEN"
ENV_TRANSCRIPT_URL = "TRANSCRIPT_URL"
ENV_QUESTION_URL = "QUESTION_URL"
ENV_POLL_INTERVAL = "POLL_INTERVAL"
ENV_LOG_LEVEL = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """Everything a run needs to talk to the API.

    RULES:
    - api_token is sent verbatim as the Authorization header (no "Bearer")
    - URLs are stored without a trailing slash
    - transcript_url / question_url may be empty when the subcommand
      does not need them
    """

    api_token: str
    transcript_url: str = ""
    question_url: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL_S


def _read(name: str, environ) -> str:
    return (environ.get(name) or "").strip()


def load_settings(
    require_transcript: bool = False,
    require_question: bool = False,
    environ: Optional[dict] = None,
) -> Settings:
    """Build Settings from the environment.

    WHY: Configuration errors should surface once, at startup, with every
    missing variable listed, instead of halfway through a poll loop.

    HOW: Reads the variables from environ (default os.environ, already
    populated by python-dotenv), collects the missing required ones,
    and validates POLL_INTERVAL as a non-negative number.

    Args:
        require_transcript: Whether TRANSCRIPT_URL must be set.
        require_question: Whether QUESTION_URL must be set.
        environ: Mapping to read from instead of os.environ (tests).

    Returns:
        A frozen Settings instance.
    """
    if environ is None:
        environ = os.environ

    token = _read(ENV_API_TOKEN, environ)
    transcript_url = _read(ENV_TRANSCRIPT_URL, environ).rstrip("/")
    question_url = _read(ENV_QUESTION_URL, environ).rstrip("/")

    missing = []
    if not token:
        missing.append(ENV_API_TOKEN)
    if require_transcript and not transcript_url:
        missing.append(ENV_TRANSCRIPT_URL)
    if require_question and not question_url:
        missing.append(ENV_QUESTION_URL)
    if missing:
        raise ConfigurationError(
            "{} not set. Add {} to the environment or the .env file.".format(
                ", ".join(missing), "them" if len(missing) > 1 else "it"
            )
        )

    raw_interval = _read(ENV_POLL_INTERVAL, environ)
    poll_interval = DEFAULT_POLL_INTERVAL_S
    if raw_interval:
        try:
            poll_interval = float(raw_interval)
        except ValueError:
            raise ConfigurationError(
                f"{ENV_POLL_INTERVAL} must be a number of seconds, got {raw_interval!r}"
            ) from None
        if poll_interval < 0:
            raise ConfigurationError(
                f"{ENV_POLL_INTERVAL} must not be negative, got {raw_interval!r}"
            )

    return Settings(
        api_token=token,
        transcript_url=transcript_url,
        question_url=question_url,
        poll_interval=poll_interval,
    )


def log_level_from_env(environ: Optional[dict] = None) -> str:
    """Return the LOG_LEVEL name from the environment (default WARNING).

    Raises:
        ConfigurationError: LOG_LEVEL is not a logging level name.
    """
    if environ is None:
        environ = os.environ
    name = _read(ENV_LOG_LEVEL, environ).upper() or "WARNING"
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigurationError(
            f"{ENV_LOG_LEVEL} must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got {name!r}"
        )
    return name
