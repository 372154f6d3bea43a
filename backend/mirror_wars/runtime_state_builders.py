from __future__ import annotations

from typing import Any

from .runtime_types import PlayerConnection, RoomRuntime


def is_role_public(room: RoomRuntime, player: PlayerConnection) -> bool:
    return player.eliminated or room.phase == "ended"


def build_player_entry(
    room: RoomRuntime,
    player: PlayerConnection,
    *,
    include_pattern: bool = False,
    reveal_role: bool | None = None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": player.peer_id,
        "name": player.name,
        "isHost": player.is_host,
        "eliminated": player.eliminated,
    }
    show_role = is_role_public(room, player) if reveal_role is None else reveal_role
    if show_role and player.role is not None:
        entry["role"] = player.role
    if include_pattern:
        entry["pattern"] = list(room.patterns.get(player.peer_id, []))
    return entry


def build_players(
    room: RoomRuntime,
    *,
    include_patterns: bool = False,
    reveal_roles: bool | None = None,
    active_only: bool = False,
) -> list[dict[str, Any]]:
    return [
        build_player_entry(
            room,
            player,
            include_pattern=include_patterns and not player.eliminated,
            reveal_role=reveal_roles,
        )
        for player in room.players.values()
        if not (active_only and player.eliminated)
    ]


def build_progress(room: RoomRuntime, submissions: dict[str, Any]) -> dict[str, int]:
    active_ids = {player.peer_id for player in room.active_players()}
    return {
        "submitted": sum(1 for peer_id in submissions if peer_id in active_ids),
        "total": len(active_ids),
    }


def build_state_for_viewer(room: RoomRuntime, viewer: PlayerConnection) -> dict[str, Any]:
    """Full room snapshot as seen by one participant (own role only)."""
    state: dict[str, Any] = {
        "type": "roomState",
        "roomCode": room.room_code,
        "phase": room.phase,
        "roundNumber": room.round,
        "playerId": viewer.peer_id,
        "isHost": viewer.is_host,
        "role": viewer.role,
        "eliminated": viewer.eliminated,
        "endsAt": room.phase_ends_at,
        "players": build_players(room, include_patterns=room.phase == "voting"),
        "stateVersion": room.state_version,
    }
    if room.phase == "pattern":
        state["progress"] = build_progress(room, room.patterns)
        state["hasSubmitted"] = viewer.peer_id in room.patterns
    elif room.phase == "voting":
        state["progress"] = build_progress(room, room.votes)
        state["hasSubmitted"] = viewer.peer_id in room.votes
        state["votedFor"] = room.votes.get(viewer.peer_id)
    if room.phase in {"results", "ended"} and room.last_result is not None:
        state["lastResult"] = room.last_result
    if room.win_result is not None:
        state["winResult"] = room.win_result
    return state
