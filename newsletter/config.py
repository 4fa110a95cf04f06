from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Mapping, Optional

from newsletter.window import parse_instant

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_SOURCE_REPOSITORY = "webmachinelearning/webmcp"
DEFAULT_PROJECT_NAME = "WebMCP"

_FALSY = {"0", "false", "no", "off"}


class ConfigError(RuntimeError):
    """Raised when the run cannot be configured (missing token, bad override)."""


@dataclass(frozen=True)
class NewsletterConfig:
    token: str
    source_repository: str  # "owner/name" whose activity is reported
    target_repository: Optional[str]  # "owner/name" that receives the discussion
    project_name: str
    now_override: Optional[datetime]
    dry_run: bool
    graphql_url: str
    timeout_s: float
    user_agent: str

    def with_overrides(
        self,
        now_override: Optional[datetime] = None,
        dry_run: Optional[bool] = None,
        target_repository: Optional[str] = None,
    ) -> "NewsletterConfig":
        """Return a copy with CLI flags applied; unset (None or False) flags leave a field untouched."""
        changes = {}
        if now_override is not None:
            changes["now_override"] = now_override
        if dry_run:
            changes["dry_run"] = True
        if target_repository:
            changes["target_repository"] = target_repository
        return replace(self, **changes)


def _flag(value: str) -> bool:
    value = value.strip()
    return bool(value) and value.lower() not in _FALSY


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> NewsletterConfig:
    env = os.environ if environ is None else environ

    token = env.get("GITHUB_TOKEN", "").strip()
    if not token:
        raise ConfigError("GITHUB_TOKEN is required")

    override_raw = env.get("DATE_OVERRIDE", "").strip()
    try:
        now_override = parse_instant(override_raw) if override_raw else None
    except ValueError as e:
        raise ConfigError(str(e)) from e

    target = env.get("TARGET_REPOSITORY", "").strip() or env.get("GITHUB_REPOSITORY", "").strip() or None

    try:
        timeout_s = float(env.get("NEWSLETTER_TIMEOUT_S", "20"))
    except ValueError as e:
        raise ConfigError(f"Invalid NEWSLETTER_TIMEOUT_S: {e}") from e

    return NewsletterConfig(
        token=token,
        source_repository=env.get("NEWSLETTER_SOURCE_REPOSITORY", "").strip() or DEFAULT_SOURCE_REPOSITORY,
        target_repository=target,
        project_name=env.get("NEWSLETTER_PROJECT_NAME", "").strip() or DEFAULT_PROJECT_NAME,
        now_override=now_override,
        dry_run=_flag(env.get("DRY_RUN", "")),
        graphql_url=env.get("GITHUB_GRAPHQL_URL", "").strip() or DEFAULT_GRAPHQL_URL,
        timeout_s=timeout_s,
        user_agent=env.get("NEWSLETTER_USER_AGENT", "webmcp-newsletter/0.1"),
    )
