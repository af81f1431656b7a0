# ------------------ Config & Env ------------------
"""
Run configuration collected from environment variables.

Environment Variables:
  ACCESS_TOKEN       : Personal token. Falls back to GITHUB_TOKEN in Actions.
  USER_NAME          : GitHub login. Defaults to actor / repository owner.
  UPTIME_EPOCH       : YYYY-MM-DD the uptime counter starts from. Default 2005-05-11.
  TEMPLATE_PATH      : SVG template with {{PLACEHOLDER}} tokens. Default template.svg.
  ASCII_PATH         : Optional decorative text. Default ascii.txt.
  OUTPUT_PATH        : Rendered card. Default profile.svg.
  ASCII_MODE         : 'lines' => one <tspan> per line. 'inline' => single text blob.
  ASCII_X            : x attribute of each ASCII <tspan>. Default 15.
  ASCII_LINE_HEIGHT  : dy between ASCII lines. Default 20.
  COMMIT_SOURCE      : 'events' => recent push estimate. 'contributions' => exact count.
  GQL_MAX_RETRIES    : attempts per GraphQL request on transient failures. Default 1.
  GQL_RETRY_BACKOFF  : backoff base in seconds. Default 1.5.
  DEBUG              : '1' => print [DEBUG] lines.
"""

from __future__ import annotations
import datetime
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dateutil import parser as date_parser
from dateutil import tz

from .errors import PreconditionError

DEFAULT_UPTIME_EPOCH = "2005-05-11"
DEFAULT_TEMPLATE_PATH = "template.svg"
DEFAULT_ASCII_PATH = "ascii.txt"
DEFAULT_OUTPUT_PATH = "profile.svg"
DEFAULT_ASCII_X = 15
DEFAULT_ASCII_LINE_HEIGHT = 20

ASCII_MODES = ("lines", "inline")
COMMIT_SOURCES = ("events", "contributions")


def debug(msg: str):
    if os.environ.get("DEBUG", "0") == "1":
        print(f"[DEBUG] {msg}")


@dataclass(frozen=True)
class RunConfig:
    user_name: str
    access_token: str
    uptime_epoch: datetime.datetime
    template_path: str = DEFAULT_TEMPLATE_PATH
    ascii_path: str = DEFAULT_ASCII_PATH
    output_path: str = DEFAULT_OUTPUT_PATH
    ascii_mode: str = "lines"
    ascii_x: int = DEFAULT_ASCII_X
    ascii_line_height: int = DEFAULT_ASCII_LINE_HEIGHT
    commit_source: str = "events"
    max_retries: int = 1
    retry_backoff: float = 1.5


def parse_epoch(value: str) -> datetime.datetime:
    """Parse an ISO 8601 date/time; naive values are taken as UTC."""
    try:
        parsed = date_parser.isoparse(value)
    except ValueError as e:
        raise PreconditionError(f"Invalid UPTIME_EPOCH {value!r}. Expected YYYY-MM-DD.") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.UTC)
    return parsed


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise PreconditionError(f"{name} must be an integer, got {raw!r}") from e


def _choice_env(env: Mapping[str, str], name: str, choices, default: str) -> str:
    value = (env.get(name) or default).strip().lower()
    if value not in choices:
        raise PreconditionError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def infer_user_name(env: Mapping[str, str]) -> str:
    repository = env.get("GITHUB_REPOSITORY", "")
    default_owner = repository.split("/")[0] if "/" in repository else ""
    return env.get("USER_NAME") or env.get("GITHUB_ACTOR") or default_owner


def load_config(env: Optional[Mapping[str, str]] = None) -> RunConfig:
    """Build a RunConfig, failing fast when subject or credential is absent."""
    if env is None:
        env = os.environ

    user_name = infer_user_name(env)
    if not user_name:
        raise PreconditionError("Cannot infer USER_NAME. Set USER_NAME env variable.")
    access_token = env.get("ACCESS_TOKEN") or env.get("GITHUB_TOKEN")
    if not access_token:
        raise PreconditionError("ACCESS_TOKEN / GITHUB_TOKEN environment variable is not set!")

    try:
        retry_backoff = float(env.get("GQL_RETRY_BACKOFF", "1.5"))
    except ValueError as e:
        raise PreconditionError("GQL_RETRY_BACKOFF must be a number") from e

    max_retries = _int_env(env, "GQL_MAX_RETRIES", 1)
    if max_retries < 1:
        raise PreconditionError("GQL_MAX_RETRIES must be at least 1")

    return RunConfig(
        user_name=user_name,
        access_token=access_token,
        uptime_epoch=parse_epoch(env.get("UPTIME_EPOCH") or DEFAULT_UPTIME_EPOCH),
        template_path=env.get("TEMPLATE_PATH") or DEFAULT_TEMPLATE_PATH,
        ascii_path=env.get("ASCII_PATH") or DEFAULT_ASCII_PATH,
        output_path=env.get("OUTPUT_PATH") or DEFAULT_OUTPUT_PATH,
        ascii_mode=_choice_env(env, "ASCII_MODE", ASCII_MODES, "lines"),
        ascii_x=_int_env(env, "ASCII_X", DEFAULT_ASCII_X),
        ascii_line_height=_int_env(env, "ASCII_LINE_HEIGHT", DEFAULT_ASCII_LINE_HEIGHT),
        commit_source=_choice_env(env, "COMMIT_SOURCE", COMMIT_SOURCES, "events"),
        max_retries=max_retries,
        retry_backoff=retry_backoff,
    )
