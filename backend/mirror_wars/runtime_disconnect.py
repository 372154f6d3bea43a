from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .runtime_constants import IN_GAME_PHASES
from .runtime_phase_flow import end_game
from .runtime_state_builders import build_players, build_progress
from .runtime_submissions import check_pattern_quorum, check_vote_quorum
from .runtime_win import evaluate_win

if TYPE_CHECKING:
    from .runtime import MirrorRuntime
    from .runtime_types import PlayerConnection, RoomRuntime

logger = logging.getLogger(__name__)


def assign_new_host(runtime: "MirrorRuntime", room: "RoomRuntime") -> "PlayerConnection | None":
    candidate: PlayerConnection | None = None
    for player in room.players.values():
        player.is_host = False
        if candidate is None:
            candidate = player

    if candidate is None:
        room.host_peer_id = ""
        return None

    candidate.is_host = True
    room.host_peer_id = candidate.peer_id
    runtime._increment_stat("hostReassigned")
    logger.info(
        "[HOST_REASSIGNED] room=%s new_host=%s phase=%s",
        room.room_code,
        candidate.peer_id,
        room.phase,
    )
    runtime._log_ws_event("host_reassigned", roomCode=room.room_code, newHostPeerId=candidate.peer_id)
    return candidate


def purge_submissions(room: "RoomRuntime", peer_id: str) -> list[str]:
    """Drop a departed participant's pattern and vote, and any vote cast for them.

    Returns the voters whose ballot was discarded.
    """
    room.patterns.pop(peer_id, None)
    room.votes.pop(peer_id, None)
    orphaned_voters = [voter for voter, target in room.votes.items() if target == peer_id]
    for voter in orphaned_voters:
        room.votes.pop(voter, None)
    return orphaned_voters


async def remove_participant(
    runtime: "MirrorRuntime",
    room: "RoomRuntime",
    peer_id: str,
    reason: str = "disconnect",
) -> bool:
    """Apply departure cleanup; returns True when the room is now empty.

    Must be called with ``room.lock`` held. Never raises for a missing peer.
    """
    removed = room.players.pop(peer_id, None)
    if removed is None:
        return not room.players

    orphaned_voters = purge_submissions(room, peer_id)
    runtime._mark_state_changed(room)
    runtime._log_ws_event(
        "player_left",
        roomCode=room.room_code,
        peerId=peer_id,
        wasHost=removed.is_host,
        phase=room.phase,
        reason=reason,
        orphanedVotes=len(orphaned_voters),
    )

    if not room.players:
        room.closed = True
        room.host_peer_id = ""
        runtime._clear_timers(room)
        return True

    if removed.is_host or room.host_peer_id == peer_id:
        assign_new_host(runtime, room)

    await runtime._broadcast(
        room,
        {"type": "playerLeft", "playerId": peer_id, "players": build_players(room)},
    )

    if room.phase in IN_GAME_PHASES:
        win_result = evaluate_win(room.players.values())
        if win_result is not None:
            end_game(runtime, room, win_result)
            await runtime._broadcast(
                room,
                {
                    "type": "gameEnded",
                    "reason": "player-left",
                    "winResult": win_result,
                    "players": build_players(room),
                },
            )
            return False

    if room.phase == "pattern":
        if not await check_pattern_quorum(runtime, room):
            await runtime._broadcast(
                room,
                {"type": "patternSubmitted", "playerId": None, **build_progress(room, room.patterns)},
            )
    elif room.phase == "voting":
        if not await check_vote_quorum(runtime, room):
            await runtime._broadcast(room, {"type": "voteSubmitted", **build_progress(room, room.votes)})

    return False
