from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .runtime_errors import UnknownParticipant, UnknownTarget, WrongPhase
from .runtime_patterns import normalize_pattern
from .runtime_phase_flow import complete_patterns, resolve_voting
from .runtime_state_builders import build_progress

if TYPE_CHECKING:
    from .runtime import MirrorRuntime
    from .runtime_types import PlayerConnection, RoomRuntime


def is_quorum(room: "RoomRuntime", submissions: Mapping[str, Any]) -> bool:
    active = room.active_players()
    if not active:
        return False
    return all(player.peer_id in submissions for player in active)


def _require_active(room: "RoomRuntime", player: "PlayerConnection") -> None:
    current = room.players.get(player.peer_id)
    if current is None or current.eliminated:
        raise UnknownParticipant()


async def submit_pattern(
    runtime: "MirrorRuntime",
    room: "RoomRuntime",
    player: "PlayerConnection",
    raw_pattern: Any,
) -> None:
    if room.phase != "pattern":
        raise WrongPhase("Patterns can only be submitted during the pattern phase")
    _require_active(room, player)
    pattern = normalize_pattern(raw_pattern, runtime.settings.grid_cells)

    room.patterns[player.peer_id] = pattern
    runtime._mark_state_changed(room)

    if await check_pattern_quorum(runtime, room):
        return

    progress = build_progress(room, room.patterns)
    await runtime._broadcast(
        room,
        {"type": "patternSubmitted", "playerId": player.peer_id, **progress},
    )


async def submit_vote(
    runtime: "MirrorRuntime",
    room: "RoomRuntime",
    player: "PlayerConnection",
    target_id: str,
) -> None:
    if room.phase != "voting":
        raise WrongPhase("Votes can only be cast during the voting phase")
    _require_active(room, player)
    target = room.players.get(target_id)
    if target is None or target.eliminated:
        raise UnknownTarget()

    room.votes[player.peer_id] = target.peer_id
    runtime._mark_state_changed(room)

    if await check_vote_quorum(runtime, room):
        return

    progress = build_progress(room, room.votes)
    await runtime._broadcast(room, {"type": "voteSubmitted", **progress})


async def check_pattern_quorum(runtime: "MirrorRuntime", room: "RoomRuntime") -> bool:
    if room.phase != "pattern" or not is_quorum(room, room.patterns):
        return False
    await complete_patterns(runtime, room)
    return True


async def check_vote_quorum(runtime: "MirrorRuntime", room: "RoomRuntime") -> bool:
    if room.phase != "voting" or not is_quorum(room, room.votes):
        return False
    await resolve_voting(runtime, room)
    return True
