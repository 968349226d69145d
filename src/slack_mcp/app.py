from __future__ import annotations

from .clients.slack import SlackClient
from .config import SlackConfig
from .config import load_config
from .tools import ToolDispatcher


def build_client(cfg: SlackConfig) -> SlackClient:
    return SlackClient(
        bot_token=cfg.bot_token,
        team_id=cfg.team_id,
        channel_ids=cfg.channel_ids,
        base_url=cfg.api_base_url,
        timeout_s=cfg.timeout_s,
        ca_bundle=cfg.ca_bundle,
        skip_verify=cfg.skip_verify,
    )


def build_dispatcher(cfg: SlackConfig | None = None) -> ToolDispatcher:
    return ToolDispatcher(build_client(cfg if cfg is not None else load_config()))
