from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from fastapi import WebSocket

from .runtime_constants import ROOM_CODE_SPACE
from .runtime_errors import CapacityError, RoomNotFound
from .runtime_types import PlayerConnection, RoomRuntime
from .runtime_utils import now_ms, random_id, random_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Live rooms keyed by code.

    ``rooms_lock`` only guards insert/remove; room state is guarded by each
    room's own lock.
    """

    def __init__(self, *, code_attempts: int = 64, rng: random.Random | None = None) -> None:
        self.rooms: dict[str, RoomRuntime] = {}
        self.rooms_lock = asyncio.Lock()
        self._code_attempts = max(1, int(code_attempts))
        self._rng = rng

    @property
    def active_rooms_count(self) -> int:
        return len(self.rooms)

    def _allocate_code(self) -> str:
        if len(self.rooms) >= ROOM_CODE_SPACE:
            raise CapacityError()
        for _ in range(self._code_attempts):
            room_code = random_room_code(self._rng)
            if room_code not in self.rooms:
                return room_code
        logger.warning(
            "Room code allocation failed after %s attempts (%s live rooms)",
            self._code_attempts,
            len(self.rooms),
        )
        raise CapacityError()

    async def create_room(
        self,
        host_name: str,
        websocket: WebSocket,
    ) -> tuple[RoomRuntime, PlayerConnection]:
        async with self.rooms_lock:
            room_code = self._allocate_code()
            host = PlayerConnection(
                peer_id=random_id(),
                name=host_name,
                websocket=websocket,
                is_host=True,
            )
            room = RoomRuntime(
                room_code=room_code,
                host_peer_id=host.peer_id,
                created_at=now_ms(),
                timers={},
            )
            room.players[host.peer_id] = host
            self.rooms[room_code] = room
        return room, host

    async def get_room(self, room_code: str) -> RoomRuntime:
        async with self.rooms_lock:
            room = self.rooms.get(room_code)
        if room is None or room.closed:
            raise RoomNotFound()
        return room

    async def remove_room(self, room_code: str, room: RoomRuntime | None = None) -> bool:
        async with self.rooms_lock:
            current = self.rooms.get(room_code)
            if current is None or (room is not None and current is not room):
                return False
            self.rooms.pop(room_code, None)
        return True

    async def snapshot(self, limit: int = 50) -> list[dict[str, Any]]:
        async with self.rooms_lock:
            summaries = [
                {
                    "roomCode": room.room_code,
                    "connections": len(room.players),
                    "phase": room.phase,
                    "round": room.round,
                    "createdAt": room.created_at,
                }
                for room in self.rooms.values()
            ]
        summaries.sort(key=lambda item: int(item.get("connections", 0)), reverse=True)
        return summaries[:limit]

    async def close_all(self) -> list[RoomRuntime]:
        async with self.rooms_lock:
            rooms = list(self.rooms.values())
            self.rooms.clear()
        return rooms
