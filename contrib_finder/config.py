"""Configuration constants and the config file for the Contribution Finder."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import Profile

# ── Default locations ────────────────────────────────────────
DEFAULT_CONFIG_PATH = "~/.issue-finder.json"
DEFAULT_OUTPUT_PATH = "~/contributions.md"
DEFAULT_STATE_PATH = "~/.issue-finder-state.json"

# Matches kept in history when the config file does not say
DEFAULT_MAX_MATCHES = 100

# ── GitHub search ────────────────────────────────────────────
GITHUB_API_URL = "https://api.github.com"
SEARCH_LABELS = ("good first issue", "help wanted")
SEARCH_BASE_CONSTRAINTS = "is:issue is:open no:assignee comments:>=1"
SEARCH_WINDOW_DAYS = 365         # Only issues created within this many days
SEARCH_PER_PAGE = 30
SEARCH_QUERY_DELAY_S = 2.0       # Pause between queries (secondary rate limit)

ISSUE_BODY_MAX_CHARS = 500
ISSUE_BODY_TRUNCATION_MARKER = "... [truncated]"

# Skill (lowercase) -> GitHub search qualifier. Unknown skills become topic:<skill>.
SKILL_QUALIFIERS = {
    "python": "language:python",
    "ruby on rails": "language:ruby topic:rails",
    "ruby": "language:ruby",
    "go": "language:go",
    "golang": "language:go",
    "rust": "language:rust",
    "javascript": "language:javascript",
    "typescript": "language:typescript",
    "java": "language:java",
    "c++": "language:c++",
    "c": "language:c",
    "php": "language:php",
    "swift": "language:swift",
    "kotlin": "language:kotlin",
    "postgresql": "topic:postgresql",
    "postgres": "topic:postgresql",
    "sqlite": "topic:sqlite",
    "mysql": "topic:mysql",
    "mongodb": "topic:mongodb",
    "redis": "topic:redis",
    "message queues": "topic:message-queue OR topic:rabbitmq OR topic:kafka",
    "event-driven": "topic:event-driven",
}

# ── Ranking ──────────────────────────────────────────────────
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
ANTHROPIC_MAX_TOKENS = 4096
MAX_RANKED_MATCHES = 5

DEFAULT_CONFIG_TEMPLATE = {
    "profile": {
        "name": "Your Name",
        "skills": ["Go", "Python", "PostgreSQL"],
        "interests": ["Backend development", "Databases", "Web frameworks"],
        "experience_years": 5,
    },
    "preferences": {
        "output_path": DEFAULT_OUTPUT_PATH,
        "state_path": DEFAULT_STATE_PATH,
        "notify_on_completion": True,
        "max_matches": DEFAULT_MAX_MATCHES,
    },
    "api": {
        "anthropic_key_env": "ANTHROPIC_API_KEY",
        "github_token_env": "GITHUB_TOKEN",
    },
}


def expand_path(path: str | Path) -> Path:
    return Path(os.path.expanduser(str(path)))


@dataclass(frozen=True)
class AppConfig:
    """Everything a run needs, resolved once at startup."""

    profile: Profile = field(default_factory=Profile)
    output_path: Path = field(default_factory=lambda: expand_path(DEFAULT_OUTPUT_PATH))
    state_path: Path = field(default_factory=lambda: expand_path(DEFAULT_STATE_PATH))
    notify_on_completion: bool = True
    max_matches: int = DEFAULT_MAX_MATCHES
    anthropic_key_env: str = "ANTHROPIC_API_KEY"
    github_token_env: str = "GITHUB_TOKEN"
    source: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path | None = None) -> "AppConfig":
        profile = data.get("profile") or {}
        prefs = data.get("preferences") or {}
        api = data.get("api") or {}
        for section, value in (("profile", profile), ("preferences", prefs), ("api", api)):
            if not isinstance(value, dict):
                raise ConfigError(f"config section '{section}' must be an object")

        max_matches = prefs.get("max_matches")
        try:
            return cls(
                profile=Profile.from_dict(profile),
                output_path=expand_path(prefs.get("output_path") or DEFAULT_OUTPUT_PATH),
                state_path=expand_path(prefs.get("state_path") or DEFAULT_STATE_PATH),
                notify_on_completion=bool(prefs.get("notify_on_completion", True)),
                max_matches=DEFAULT_MAX_MATCHES if max_matches is None else int(max_matches),
                anthropic_key_env=api.get("anthropic_key_env") or "ANTHROPIC_API_KEY",
                github_token_env=api.get("github_token_env") or "GITHUB_TOKEN",
                source=source,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid config value: {e}") from e

    def with_overrides(
        self,
        *,
        skills: list[str] | None = None,
        interests: list[str] | None = None,
        experience_years: int | None = None,
        output_path: str | None = None,
        state_path: str | None = None,
    ) -> "AppConfig":
        """Apply command-line values on top of the file values."""
        profile = self.profile
        if skills:
            profile = replace(profile, skills=tuple(skills))
        if interests:
            profile = replace(profile, interests=tuple(interests))
        if experience_years is not None:
            profile = replace(profile, experience_years=experience_years)

        changes: dict[str, Any] = {"profile": profile}
        if output_path:
            changes["output_path"] = expand_path(output_path)
        if state_path:
            changes["state_path"] = expand_path(state_path)
        return replace(self, **changes)

    def anthropic_key(self) -> str:
        return _require_env(self.anthropic_key_env)

    def github_token(self) -> str:
        return _require_env(self.github_token_env)


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ConfigError(f"{name} environment variable not set")
    return value


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load the JSON config file.

    With no ``path`` the default location is tried and a missing file means
    defaults. An explicit ``path`` must exist.
    """
    explicit = path is not None
    config_path = expand_path(path if explicit else DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return AppConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"error reading config {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config {config_path} must contain a JSON object")
    return AppConfig.from_dict(data, source=config_path)


def write_default_config(path: str | Path | None = None) -> Path:
    config_path = expand_path(path or DEFAULT_CONFIG_PATH)
    if config_path.exists():
        raise ConfigError(
            f"config file already exists at {config_path}. "
            "Use a different path or delete the existing file first."
        )
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(DEFAULT_CONFIG_TEMPLATE, indent=2) + "\n", encoding="utf-8")
    return config_path
