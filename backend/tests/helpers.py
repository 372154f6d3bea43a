"""Shared test doubles for driving MirrorRuntime without a real transport."""
from __future__ import annotations

import asyncio
from typing import Any

from mirror_wars.config import Settings
from mirror_wars.runtime import MirrorRuntime
from mirror_wars.runtime_types import RoomRuntime


class MockWebSocket:
    """Lightweight mock for fastapi.WebSocket."""

    def __init__(self, fail: bool = False):
        self.sent_messages: list[dict] = []
        self.fail = fail
        self.closed = False

    async def send_json(self, data: dict):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent_messages.append(data)

    async def close(self, code: int = 1000):
        self.closed = True

    def last(self, msg_type: str) -> dict | None:
        """Return the last sent message of a given type."""
        for msg in reversed(self.sent_messages):
            if msg.get("type") == msg_type:
                return msg
        return None

    def all(self, msg_type: str) -> list[dict]:
        """Return all sent messages of a given type."""
        return [m for m in self.sent_messages if m.get("type") == msg_type]


class Client:
    """One connected participant talking to the runtime through commands."""

    def __init__(self, runtime: MirrorRuntime, fail: bool = False):
        self.runtime = runtime
        self.ws = MockWebSocket(fail=fail)
        self.conn = runtime.open_connection(self.ws)

    @property
    def peer_id(self) -> str | None:
        return self.conn.peer_id

    async def send(self, msg_type: str, **fields: Any) -> None:
        await self.runtime.handle_client_message(self.conn, {"type": msg_type, **fields})

    async def disconnect(self) -> None:
        await self.runtime.close_connection(self.conn, reason="test")


def make_settings(**overrides: Any) -> Settings:
    settings = Settings()
    settings.role_reveal_ms = 0
    settings.results_delay_ms = 0
    settings.pattern_phase_ms = 60_000
    settings.voting_phase_ms = 45_000
    settings.pattern_timeout_policy = "wait"
    settings.mirror_ratio = 0.3
    settings.min_players = 3
    settings.max_players = 8
    settings.grid_size = 4
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


async def setup_room(
    runtime: MirrorRuntime,
    names: tuple[str, ...] = ("Alice", "Bob", "Carol"),
) -> tuple[RoomRuntime, list[Client]]:
    host = Client(runtime)
    await host.send("createRoom", playerName=names[0])
    room_code = host.conn.room_code
    clients = [host]
    for name in names[1:]:
        client = Client(runtime)
        await client.send("joinRoom", roomCode=room_code, playerName=name)
        clients.append(client)
    return runtime.registry.rooms[room_code], clients


async def wait_for_phase(room: RoomRuntime, phase: str, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while room.phase != phase:
        if loop.time() > deadline:
            raise AssertionError(f"room stayed in {room.phase!r}, expected {phase!r}")
        await asyncio.sleep(0.005)


async def start_to_pattern(room: RoomRuntime, clients: list[Client], roles: list[str] | None = None) -> None:
    await clients[0].send("startGame")
    await wait_for_phase(room, "pattern")
    if roles is not None:
        set_roles(room, clients, roles)


def set_roles(room: RoomRuntime, clients: list[Client], roles: list[str]) -> None:
    for client, role in zip(clients, roles):
        room.players[client.peer_id].role = role


async def submit_all_patterns(clients: list[Client]) -> None:
    for index, client in enumerate(clients):
        await client.send("submitPattern", pattern=[index % 16, (index + 1) % 16])
