"""Broadcast channel payloads (Redis pub/sub)."""

from __future__ import annotations

from pydantic import BaseModel


class BroadcastMessage(BaseModel):
    """A message published to a named broadcast channel."""

    channel: str
    payload: dict


class PingRequest(BaseModel):
    """Payload of the ping channel: who should receive the acknowledgement."""

    identity: str
