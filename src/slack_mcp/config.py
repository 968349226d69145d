from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from .errors import ConfigError


DEFAULT_API_BASE_URL = "https://slack.com/api"


@dataclass(frozen=True)
class SlackConfig:
    bot_token: str
    team_id: str
    channel_ids: tuple[str, ...] = ()
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_s: float = 30.0
    ca_bundle: str | None = None
    skip_verify: bool = False


def _env_true(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_channel_ids(raw: str | None) -> tuple[str, ...]:
    parts = [p.strip() for p in str(raw or "").split(",")]
    return tuple(p for p in parts if p)


def load_dotenv(path: Path) -> None:
    """Seed ``os.environ`` from a ``KEY=value`` file; existing values win."""
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line.removeprefix("export ").lstrip()

        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]

        os.environ.setdefault(key, value)


def load_config() -> SlackConfig:
    bot_token = os.environ.get("SLACK_BOT_TOKEN", "").strip()
    team_id = os.environ.get("SLACK_TEAM_ID", "").strip()

    missing = [name for name, value in (("SLACK_BOT_TOKEN", bot_token), ("SLACK_TEAM_ID", team_id)) if not value]
    if missing:
        raise ConfigError(missing)

    api_base_url = os.environ.get("SLACK_API_BASE_URL", "").strip().rstrip("/") or DEFAULT_API_BASE_URL
    ca_bundle = os.environ.get("SLACK_CA_BUNDLE", "").strip() or None

    return SlackConfig(
        bot_token=bot_token,
        team_id=team_id,
        channel_ids=parse_channel_ids(os.environ.get("SLACK_CHANNEL_IDS")),
        api_base_url=api_base_url,
        timeout_s=_env_float("SLACK_TIMEOUT_S", 30.0),
        ca_bundle=ca_bundle,
        skip_verify=_env_true("SLACK_SKIP_VERIFY"),
    )
