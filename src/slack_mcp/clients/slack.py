from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from ..config import DEFAULT_API_BASE_URL
from ..errors import SlackAPIError


def requests_verify_arg(*, ca_bundle: str | None, skip_verify: bool) -> bool | str:
    if skip_verify:
        return False
    if ca_bundle:
        return ca_bundle
    return True


@dataclass(frozen=True)
class SlackClient:
    bot_token: str
    team_id: str
    channel_ids: tuple[str, ...] = ()
    base_url: str = DEFAULT_API_BASE_URL
    timeout_s: float = 30.0
    ca_bundle: str | None = None
    skip_verify: bool = False

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.bot_token}"}

    def _url(self, method: str) -> str:
        return f"{self.base_url.rstrip('/')}/{method}"

    def _decode(self, method: str, r: requests.Response) -> dict[str, Any]:
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise SlackAPIError(str(exc), method=method) from exc
        try:
            data = r.json()
        except ValueError as exc:
            raise SlackAPIError(f"Invalid JSON from Slack {method}", method=method) from exc
        if not isinstance(data, dict):
            raise SlackAPIError(f"Unexpected Slack {method} response: {data!r}", method=method)
        return data

    def _get_raw(self, method: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            r = requests.get(
                self._url(method),
                headers=self._headers(),
                params=params,
                timeout=self.timeout_s,
                verify=requests_verify_arg(ca_bundle=self.ca_bundle, skip_verify=self.skip_verify),
            )
        except requests.RequestException as exc:
            raise SlackAPIError(str(exc), method=method) from exc
        return self._decode(method, r)

    def _post_raw(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            r = requests.post(
                self._url(method),
                headers=self._headers(),
                json=payload,
                timeout=self.timeout_s,
                verify=requests_verify_arg(ca_bundle=self.ca_bundle, skip_verify=self.skip_verify),
            )
        except requests.RequestException as exc:
            raise SlackAPIError(str(exc), method=method) from exc
        return self._decode(method, r)

    @staticmethod
    def _checked(method: str, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("ok"):
            raise SlackAPIError(str(data.get("error") or "unknown_error"), method=method)
        return data

    def _get(self, method: str, params: dict[str, str]) -> dict[str, Any]:
        return self._checked(method, self._get_raw(method, params))

    def _post(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._checked(method, self._post_raw(method, payload))

    def get_channels(self, limit: int = 100, cursor: str | None = None) -> dict[str, Any]:
        if not self.channel_ids:
            params = {
                "types": "public_channel",
                "exclude_archived": "true",
                "limit": str(limit),
                "team_id": self.team_id,
            }
            if cursor:
                params["cursor"] = cursor
            return self._get("conversations.list", params)

        # Pre-approved channels: one lookup each, in order, archived ones dropped.
        channels: list[dict[str, Any]] = []
        for channel_id in self.channel_ids:
            data = self._get_raw("conversations.info", {"channel": channel_id})
            channel = data.get("channel")
            if data.get("ok") and isinstance(channel, dict) and not channel.get("is_archived"):
                channels.append(channel)
        return {"ok": True, "channels": channels, "response_metadata": {"next_cursor": ""}}

    def post_message(self, channel_id: str, text: str) -> dict[str, Any]:
        return self._post("chat.postMessage", {"channel": channel_id, "text": text})

    def post_reply(self, channel_id: str, thread_ts: str, text: str) -> dict[str, Any]:
        return self._post("chat.postMessage", {"channel": channel_id, "thread_ts": thread_ts, "text": text})

    def add_reaction(self, channel_id: str, timestamp: str, reaction: str) -> dict[str, Any]:
        return self._post("reactions.add", {"channel": channel_id, "timestamp": timestamp, "name": reaction})

    def get_channel_history(self, channel_id: str, limit: int = 10) -> dict[str, Any]:
        return self._get("conversations.history", {"channel": channel_id, "limit": str(limit)})

    def get_thread_replies(self, channel_id: str, thread_ts: str) -> dict[str, Any]:
        return self._get("conversations.replies", {"channel": channel_id, "ts": thread_ts})

    def get_users(self, limit: int = 100, cursor: str | None = None) -> dict[str, Any]:
        params = {"limit": str(limit), "team_id": self.team_id}
        if cursor:
            params["cursor"] = cursor
        return self._get("users.list", params)

    def get_user_profile(self, user_id: str) -> dict[str, Any]:
        return self._get("users.profile.get", {"user": user_id, "include_labels": "true"})
