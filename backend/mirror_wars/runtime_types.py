from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

from fastapi import WebSocket

Role = Literal["original", "mirror"]
Phase = Literal[
    "lobby",
    "role-reveal",
    "pattern",
    "voting",
    "results",
    "ended",
]


@dataclass
class PlayerConnection:
    peer_id: str
    name: str
    websocket: WebSocket
    is_host: bool = False
    role: Role | None = None
    eliminated: bool = False


@dataclass
class ClientConnection:
    """One open websocket; room_code/peer_id are None while outside a room."""

    connection_id: str
    websocket: WebSocket
    room_code: str | None = None
    peer_id: str | None = None


@dataclass
class RoomRuntime:
    room_code: str
    phase: Phase = "lobby"
    round: int = 0
    host_peer_id: str = ""
    players: dict[str, PlayerConnection] = field(default_factory=dict)
    patterns: dict[str, list[int]] = field(default_factory=dict)
    votes: dict[str, str] = field(default_factory=dict)
    phase_ends_at: int | None = None
    last_result: dict[str, Any] | None = None
    win_result: dict[str, Any] | None = None
    closed: bool = False
    created_at: int = 0
    state_version: int = 1
    timers: dict[str, asyncio.Task[None] | None] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def active_players(self) -> list[PlayerConnection]:
        return [player for player in self.players.values() if not player.eliminated]
