from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect

from .config import Settings, settings as default_settings
from .runtime_constants import ROOM_TIMER_KEYS
from .runtime_disconnect import remove_participant as remove_room_participant
from .runtime_errors import (
    AlreadyInRoom,
    DuplicateName,
    GameInProgress,
    InvalidName,
    NotInRoom,
    RoomError,
    RoomFull,
    RoomNotFound,
)
from .runtime_message_handlers import JOIN_MESSAGE_TYPES
from .runtime_message_handlers import handle_message as handle_room_message
from .runtime_phase_flow import (
    advance_after_results as advance_room_after_results,
    after_pattern_deadline as after_room_pattern_deadline,
    after_role_reveal as after_room_role_reveal,
    play_again as play_room_again,
    start_game as start_room_game,
)
from .runtime_registry import RoomRegistry
from .runtime_state_builders import build_player_entry, build_players, build_state_for_viewer
from .runtime_submissions import (
    submit_pattern as submit_room_pattern,
    submit_vote as submit_room_vote,
)
from .runtime_types import ClientConnection, PlayerConnection, RoomRuntime
from .runtime_utils import (
    is_valid_player_name,
    normalize_player_name,
    now_ms,
    random_id,
    sanitize_player_name,
    sanitize_room_code,
)

logger = logging.getLogger(__name__)

TimerCallback = Callable[[RoomRuntime], Awaitable[None]]


class MirrorRuntime:
    def __init__(
        self,
        registry: RoomRegistry | None = None,
        *,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.registry = registry or RoomRegistry(code_attempts=self.settings.room_code_attempts)
        self.rng = rng
        self._ws_stats: dict[str, int] = {
            "connectSuccess": 0,
            "disconnects": 0,
            "sendFailures": 0,
            "messageReceived": 0,
            "pingReceived": 0,
            "commandsRejected": 0,
            "roomsCreated": 0,
            "roomsClosed": 0,
            "playersJoined": 0,
            "hostReassigned": 0,
            "gamesStarted": 0,
            "gamesEnded": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return self.registry.active_rooms_count

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _mark_state_changed(self, room: RoomRuntime) -> None:
        room.state_version = max(1, int(room.state_version or 1) + 1)

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def get_ws_stats(self) -> dict[str, Any]:
        room_summaries = await self.registry.snapshot(limit=50)
        return {
            "generatedAt": now_ms(),
            "activeRooms": self.registry.active_rooms_count,
            "stats": dict(self._ws_stats),
            "rooms": room_summaries,
        }

    # -- connection lifecycle -------------------------------------------------

    def open_connection(self, websocket: WebSocket) -> ClientConnection:
        connection = ClientConnection(connection_id=random_id(), websocket=websocket)
        self._on_connect()
        self._log_ws_event("connect", connectionId=connection.connection_id)
        return connection

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection = self.open_connection(websocket)

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if not isinstance(data, dict):
                    continue
                await self.handle_client_message(connection, data)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception(
                "Unexpected websocket error for room %s peer %s",
                connection.room_code or "-",
                connection.peer_id or "-",
            )
        finally:
            await self.close_connection(
                connection,
                reason=disconnect_reason,
                close_code=disconnect_code,
            )

    async def close_connection(
        self,
        connection: ClientConnection,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        room_code = connection.room_code
        peer_id = connection.peer_id
        await self.leave_room(connection, reason=reason, notify=False)
        self._on_disconnect()
        self._log_ws_event(
            "disconnect",
            connectionId=connection.connection_id,
            roomCode=room_code or "-",
            peerId=peer_id or "-",
            reason=reason,
            closeCode=close_code,
        )

    async def handle_client_message(self, connection: ClientConnection, data: dict[str, Any]) -> None:
        self._increment_stat("messageReceived")
        try:
            await handle_room_message(self, connection, data)
        except RoomError as exc:
            self._increment_stat("commandsRejected")
            message_type = str(data.get("type") or "")
            reply_type = "joinError" if message_type in JOIN_MESSAGE_TYPES else "gameError"
            self._log_ws_event(
                "command_rejected",
                level=logging.WARNING,
                roomCode=connection.room_code or "-",
                peerId=connection.peer_id or "-",
                messageType=message_type or "-",
                code=exc.code,
            )
            await self._send_safe(
                connection.websocket,
                {"type": reply_type, **exc.to_payload()},
                room_id=connection.room_code,
                peer_id=connection.peer_id,
            )

    # -- room membership ------------------------------------------------------

    def _validated_name(self, raw_name: Any) -> str:
        name = sanitize_player_name(raw_name)
        if not is_valid_player_name(name):
            raise InvalidName()
        return name

    async def create_room(self, connection: ClientConnection, player_name: Any) -> RoomRuntime:
        if connection.room_code is not None:
            raise AlreadyInRoom()
        name = self._validated_name(player_name)

        room, host = await self.registry.create_room(name, connection.websocket)
        connection.room_code = room.room_code
        connection.peer_id = host.peer_id
        self._increment_stat("roomsCreated")

        async with room.lock:
            await self._send_safe(
                connection.websocket,
                {
                    "type": "roomCreated",
                    "roomCode": room.room_code,
                    "playerId": host.peer_id,
                    "isHost": True,
                    "players": build_players(room),
                },
                room_id=room.room_code,
                peer_id=host.peer_id,
            )
        logger.info("Room %s created by %s", room.room_code, name)
        self._log_ws_event("room_created", roomCode=room.room_code, peerId=host.peer_id)
        return room

    async def join_room(
        self,
        connection: ClientConnection,
        room_code: Any,
        player_name: Any,
    ) -> RoomRuntime:
        if connection.room_code is not None:
            raise AlreadyInRoom()
        name = self._validated_name(player_name)
        room = await self.registry.get_room(sanitize_room_code(room_code))

        async with room.lock:
            if room.closed:
                raise RoomNotFound()
            if len(room.players) >= self.settings.max_players:
                raise RoomFull(f"Room is full (max {self.settings.max_players} players)")
            if room.phase != "lobby":
                raise GameInProgress()
            normalized = normalize_player_name(name)
            if any(normalize_player_name(p.name) == normalized for p in room.players.values()):
                raise DuplicateName()

            player = PlayerConnection(
                peer_id=random_id(),
                name=name,
                websocket=connection.websocket,
            )
            room.players[player.peer_id] = player
            connection.room_code = room.room_code
            connection.peer_id = player.peer_id
            self._increment_stat("playersJoined")
            self._mark_state_changed(room)

            players = build_players(room)
            await self._send_safe(
                connection.websocket,
                {
                    "type": "joinSuccess",
                    "roomCode": room.room_code,
                    "playerId": player.peer_id,
                    "isHost": False,
                    "players": players,
                },
                room_id=room.room_code,
                peer_id=player.peer_id,
            )
            await self._broadcast(
                room,
                {
                    "type": "playerJoined",
                    "players": players,
                    "newPlayer": build_player_entry(room, player),
                },
                exclude_peer_id=player.peer_id,
            )
        logger.info("%s joined room %s", name, room.room_code)
        self._log_ws_event("player_joined", roomCode=room.room_code, peerId=player.peer_id)
        return room

    async def leave_room(
        self,
        connection: ClientConnection,
        *,
        reason: str = "left",
        notify: bool = True,
    ) -> None:
        room_code = connection.room_code
        peer_id = connection.peer_id
        connection.room_code = None
        connection.peer_id = None
        if room_code is None or peer_id is None:
            if notify:
                raise NotInRoom()
            return

        async with self.registry.rooms_lock:
            room = self.registry.rooms.get(room_code)

        if room is not None:
            remove_room = False
            async with room.lock:
                if not room.closed and peer_id in room.players:
                    remove_room = await remove_room_participant(self, room, peer_id, reason=reason)
            if remove_room:
                await self._teardown_room(room)

        if notify:
            await self._send_safe(
                connection.websocket,
                {"type": "leftRoom", "roomCode": room_code},
                room_id=room_code,
                peer_id=peer_id,
            )

    async def _teardown_room(self, room: RoomRuntime) -> None:
        removed = await self.registry.remove_room(room.room_code, room)
        if removed:
            self._increment_stat("roomsClosed")
            logger.info("Room %s deleted - no players", room.room_code)
            self._log_ws_event("room_empty", roomCode=room.room_code)

    async def resolve_membership(
        self,
        connection: ClientConnection,
    ) -> tuple[RoomRuntime, str]:
        if connection.room_code is None or connection.peer_id is None:
            raise NotInRoom()
        room = await self.registry.get_room(connection.room_code)
        return room, connection.peer_id

    async def send_room_state(self, room: RoomRuntime, player: PlayerConnection) -> None:
        await self._send_to(room, player, build_state_for_viewer(room, player))

    async def shutdown(self) -> None:
        rooms = await self.registry.close_all()
        for room in rooms:
            async with room.lock:
                room.closed = True
                self._clear_timers(room)
        self._ws_stats["activeConnections"] = 0

    # -- outbound -------------------------------------------------------------

    async def _send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        room_id: str | None = None,
        peer_id: str | None = None,
    ) -> None:
        try:
            await websocket.send_json(data)
        except Exception as exc:
            # Connection may already be closed.
            self._increment_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] room=%s peer=%s reason=%s ws_client_state=%s ws_application_state=%s",
                room_id or "-",
                peer_id or "-",
                repr(exc),
                getattr(websocket, "client_state", None),
                getattr(websocket, "application_state", None),
            )

    async def _send_to(self, room: RoomRuntime, player: PlayerConnection, data: dict[str, Any]) -> None:
        await self._send_safe(
            player.websocket,
            data,
            room_id=room.room_code,
            peer_id=player.peer_id,
        )

    async def _broadcast(
        self,
        room: RoomRuntime,
        data: dict[str, Any],
        *,
        exclude_peer_id: str | None = None,
    ) -> None:
        for player in list(room.players.values()):
            if player.peer_id == exclude_peer_id:
                continue
            await self._send_to(room, player, data)

    # -- timers ---------------------------------------------------------------

    def _cancel_timer(self, room: RoomRuntime, key: str) -> None:
        task = room.timers.get(key)
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
        room.timers[key] = None

    def _clear_timers(self, room: RoomRuntime) -> None:
        for key in ROOM_TIMER_KEYS:
            self._cancel_timer(room, key)

    def _schedule_timer(
        self,
        room: RoomRuntime,
        key: str,
        delay_ms: int,
        callback: TimerCallback,
    ) -> None:
        self._cancel_timer(room, key)
        delay_s = max(0.0, (delay_ms or 0) / 1000)

        async def runner() -> None:
            try:
                await asyncio.sleep(delay_s)
            except asyncio.CancelledError:
                return
            async with room.lock:
                if room.closed or room.timers.get(key) is not asyncio.current_task():
                    return
                room.timers[key] = None
                try:
                    await callback(room)
                except Exception:
                    logger.exception("Timer %s failed for room %s", key, room.room_code)

        room.timers[key] = asyncio.create_task(runner(), name=f"{room.room_code}:{key}")

    # -- phase flow -----------------------------------------------------------

    async def _start_game(self, room: RoomRuntime, player: PlayerConnection) -> None:
        await start_room_game(self, room, player)

    async def _after_role_reveal(self, room: RoomRuntime) -> None:
        await after_room_role_reveal(self, room)

    async def _after_pattern_deadline(self, room: RoomRuntime) -> None:
        await after_room_pattern_deadline(self, room)

    async def _advance_after_results(self, room: RoomRuntime) -> None:
        await advance_room_after_results(self, room)

    async def _play_again(self, room: RoomRuntime, player: PlayerConnection) -> None:
        await play_room_again(self, room, player)

    async def _submit_pattern(self, room: RoomRuntime, player: PlayerConnection, pattern: Any) -> None:
        await submit_room_pattern(self, room, player, pattern)

    async def _submit_vote(self, room: RoomRuntime, player: PlayerConnection, target_id: str) -> None:
        await submit_room_vote(self, room, player, target_id)
