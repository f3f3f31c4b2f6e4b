"""Reads consumer backlogs from a NATS server's JetStream monitoring endpoint."""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Mapping

from natscaler.errors import HTTPStatusCodeError

GLOBAL_ACCOUNT_NAME = "$G"


class NoAccountFoundError(LookupError):
    """The monitoring response held no account details."""

    def __init__(self) -> None:
        super().__init__("no accounts found")


def _list_or_null(items: list) -> list | None:
    return [item.to_dict() for item in items] or None


@dataclass
class ConsumerDetail:
    name: str = ""
    num_pending: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConsumerDetail":
        return cls(name=data.get("name", ""), num_pending=data.get("num_pending", 0))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "num_pending": self.num_pending}


@dataclass
class StreamDetail:
    name: str = ""
    consumer_detail: list[ConsumerDetail] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StreamDetail":
        return cls(
            name=data.get("name", ""),
            consumer_detail=[ConsumerDetail.from_dict(c) for c in data.get("consumer_detail") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "consumer_detail": _list_or_null(self.consumer_detail)}


@dataclass
class AccountDetails:
    stream_detail: list[StreamDetail] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccountDetails":
        return cls(stream_detail=[StreamDetail.from_dict(s) for s in data.get("stream_detail") or []])

    def to_dict(self) -> dict[str, Any]:
        return {"stream_detail": _list_or_null(self.stream_detail)}


@dataclass
class JszResponse:
    """The parts of a /jsz response that the scaler reads."""

    account_details: list[AccountDetails] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JszResponse":
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        return cls(
            account_details=[AccountDetails.from_dict(a) for a in data.get("account_details") or []]
        )

    def to_dict(self) -> dict[str, Any]:
        return {"account_details": _list_or_null(self.account_details)}


class NatsService:
    """Queries the NATS monitoring endpoint over HTTP."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def get_pending_messages(self, base_url: str, stream_name: str, consumer_name: str) -> int:
        """Return the number of pending messages of a consumer in the global account."""
        query = urllib.parse.urlencode(
            {"acc": GLOBAL_ACCOUNT_NAME, "consumers": "1", "leader_only": "1"}
        )
        url = f"{base_url.rstrip('/')}/jsz?{query}"
        request = urllib.request.Request(url, method="GET")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                payload = response.read()
        except urllib.error.HTTPError as err:
            with err:
                raise HTTPStatusCodeError(err.code, err.read()) from None
        except (urllib.error.URLError, OSError) as err:
            raise ConnectionError(f"failed to query nats subscriptions: {err}") from err

        if status != 200:
            raise HTTPStatusCodeError(status, payload)

        try:
            data = JszResponse.from_dict(json.loads(payload))
        except (ValueError, TypeError, AttributeError) as err:
            raise ValueError(f"failed to decode JSON: {err}") from err

        if not data.account_details:
            raise NoAccountFoundError()

        # Only the global account is queried, so the first entry is the one wanted.
        account = data.account_details[0]
        for stream in account.stream_detail:
            if stream.name != stream_name:
                continue
            for consumer in stream.consumer_detail:
                if consumer.name == consumer_name:
                    return consumer.num_pending

        raise LookupError(
            f"couldn't find NATS account <{GLOBAL_ACCOUNT_NAME}>, "
            f"stream <{stream_name}>, consumer <{consumer_name}>"
        )