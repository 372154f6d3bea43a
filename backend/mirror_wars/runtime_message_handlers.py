from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .runtime_errors import NotInRoom, RoomNotFound
from .runtime_utils import now_ms
from .schemas.commands import (
    CreateRoomCommand,
    GetStateCommand,
    JoinRoomCommand,
    LeaveRoomCommand,
    PingCommand,
    PlayAgainCommand,
    StartGameCommand,
    SubmitPatternCommand,
    SubmitVoteCommand,
    parse_command,
)

if TYPE_CHECKING:
    from .runtime import MirrorRuntime
    from .runtime_types import ClientConnection

JOIN_MESSAGE_TYPES = frozenset({"createRoom", "joinRoom"})


async def handle_message(
    runtime: "MirrorRuntime",
    connection: "ClientConnection",
    data: dict[str, Any],
) -> None:
    command = parse_command(data)

    if isinstance(command, PingCommand):
        runtime._increment_stat("pingReceived")
        await runtime._send_safe(
            connection.websocket,
            {"type": "pong", "serverTime": now_ms()},
            room_id=connection.room_code,
            peer_id=connection.peer_id,
        )
        return

    if isinstance(command, CreateRoomCommand):
        await runtime.create_room(connection, command.playerName)
        return

    if isinstance(command, JoinRoomCommand):
        await runtime.join_room(connection, command.roomCode, command.playerName)
        return

    if isinstance(command, LeaveRoomCommand):
        await runtime.leave_room(connection, reason=command.type)
        return

    try:
        room, peer_id = await runtime.resolve_membership(connection)
    except RoomNotFound:
        connection.room_code = None
        connection.peer_id = None
        raise NotInRoom() from None

    async with room.lock:
        player = room.players.get(peer_id)
        if room.closed or player is None:
            raise NotInRoom()

        if isinstance(command, StartGameCommand):
            await runtime._start_game(room, player)
        elif isinstance(command, SubmitPatternCommand):
            await runtime._submit_pattern(room, player, command.pattern)
        elif isinstance(command, SubmitVoteCommand):
            await runtime._submit_vote(room, player, command.targetId)
        elif isinstance(command, PlayAgainCommand):
            await runtime._play_again(room, player)
        elif isinstance(command, GetStateCommand):
            await runtime.send_room_state(room, player)
