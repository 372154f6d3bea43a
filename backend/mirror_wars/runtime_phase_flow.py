from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .runtime_errors import AlreadyStarted, InsufficientPlayers, NotHost, WrongPhase
from .runtime_patterns import analyze_patterns
from .runtime_roles import apply_roles
from .runtime_state_builders import build_player_entry, build_players
from .runtime_votes import resolve_votes, tally_votes
from .runtime_win import evaluate_win
from .runtime_utils import now_ms

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import MirrorRuntime
    from .runtime_types import PlayerConnection, RoomRuntime


async def start_game(runtime: "MirrorRuntime", room: "RoomRuntime", player: "PlayerConnection") -> None:
    if not player.is_host or room.host_peer_id != player.peer_id:
        raise NotHost()
    min_players = runtime.settings.min_players
    if len(room.players) < min_players:
        raise InsufficientPlayers(f"Need at least {min_players} players to start")
    if room.phase != "lobby":
        raise AlreadyStarted()

    runtime._clear_timers(room)
    apply_roles(room.players.values(), runtime.settings.mirror_ratio, runtime.rng)
    for member in room.players.values():
        member.eliminated = False

    room.phase = "role-reveal"
    room.round = 1
    room.patterns = {}
    room.votes = {}
    room.last_result = None
    room.win_result = None
    room.phase_ends_at = now_ms() + runtime.settings.role_reveal_ms
    runtime._mark_state_changed(room)
    runtime._increment_stat("gamesStarted")

    players = build_players(room, reveal_roles=False)
    for member in list(room.players.values()):
        await runtime._send_to(
            room,
            member,
            {
                "type": "roleAssigned",
                "role": member.role,
                "roundNumber": room.round,
                "revealEndsAt": room.phase_ends_at,
                "players": players,
            },
        )

    runtime._schedule_timer(room, "roleReveal", runtime.settings.role_reveal_ms, runtime._after_role_reveal)
    logger.info("Game started in room %s with %s players", room.room_code, len(room.players))
    runtime._log_ws_event(
        "game_started",
        roomCode=room.room_code,
        players=len(room.players),
        mirrors=sum(1 for member in room.players.values() if member.role == "mirror"),
    )


def enter_pattern_phase(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    room.phase = "pattern"
    room.patterns = {}
    room.votes = {}
    room.phase_ends_at = now_ms() + runtime.settings.pattern_phase_ms
    runtime._mark_state_changed(room)
    if runtime.settings.pattern_timeout_policy == "force-submit":
        runtime._schedule_timer(
            room,
            "patternDeadline",
            runtime.settings.pattern_phase_ms,
            runtime._after_pattern_deadline,
        )


def enter_voting_phase(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    runtime._cancel_timer(room, "patternDeadline")
    room.phase = "voting"
    room.votes = {}
    room.phase_ends_at = now_ms() + runtime.settings.voting_phase_ms
    runtime._mark_state_changed(room)


async def after_role_reveal(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    if room.phase != "role-reveal":
        return
    enter_pattern_phase(runtime, room)
    await runtime._broadcast(
        room,
        {
            "type": "patternPhaseStarted",
            "roundNumber": room.round,
            "endsAt": room.phase_ends_at,
            "players": build_players(room, active_only=True),
        },
    )


async def complete_patterns(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    active_ids = [player.peer_id for player in room.active_players()]
    submitted = {peer_id: room.patterns[peer_id] for peer_id in active_ids if peer_id in room.patterns}
    enter_voting_phase(runtime, room)
    # Patterns stay readable for the voting phase; they are cleared on the next pattern phase.
    room.patterns = submitted
    await runtime._broadcast(
        room,
        {
            "type": "patternsComplete",
            "roundNumber": room.round,
            "endsAt": room.phase_ends_at,
            "players": build_players(room, include_patterns=True),
            "similarity": analyze_patterns(submitted),
        },
    )


async def after_pattern_deadline(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    if room.phase != "pattern":
        return
    stragglers = [player for player in room.active_players() if player.peer_id not in room.patterns]
    for player in stragglers:
        room.patterns[player.peer_id] = []
    runtime._log_ws_event(
        "pattern_deadline",
        roomCode=room.room_code,
        round=room.round,
        forced=[player.peer_id for player in stragglers],
    )
    await complete_patterns(runtime, room)


def end_game(runtime: "MirrorRuntime", room: "RoomRuntime", win_result: dict[str, Any]) -> None:
    runtime._clear_timers(room)
    room.phase = "ended"
    room.win_result = win_result
    room.phase_ends_at = None
    room.patterns = {}
    room.votes = {}
    runtime._mark_state_changed(room)
    runtime._increment_stat("gamesEnded")
    logger.info("Game ended in room %s: %s", room.room_code, win_result.get("winner"))
    runtime._log_ws_event("game_ended", roomCode=room.room_code, winner=win_result.get("winner"))


async def resolve_voting(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    votes = dict(room.votes)
    eliminated_id = resolve_votes(votes, runtime.rng)
    eliminated = room.players.get(eliminated_id) if eliminated_id else None

    if eliminated is None:
        logger.warning("Voting resolved without an elimination in room %s", room.room_code)
    else:
        eliminated.eliminated = True

    win_result = evaluate_win(room.players.values()) if eliminated is not None else None

    if win_result is not None:
        end_game(runtime, room, win_result)
    else:
        room.round += 1
        room.phase = "results"
        room.patterns = {}
        room.votes = {}
        room.phase_ends_at = now_ms() + runtime.settings.results_delay_ms
        runtime._mark_state_changed(room)
        runtime._schedule_timer(
            room,
            "results",
            runtime.settings.results_delay_ms,
            runtime._advance_after_results,
        )

    result = {
        "type": "votingComplete",
        "eliminatedPlayer": build_player_entry(room, eliminated, reveal_role=True) if eliminated else None,
        "votes": votes,
        "tally": tally_votes(votes),
        "players": build_players(room),
        "winResult": win_result,
    }
    room.last_result = {key: value for key, value in result.items() if key != "type"}
    runtime._log_ws_event(
        "voting_complete",
        roomCode=room.room_code,
        eliminated=eliminated.peer_id if eliminated else None,
        winner=win_result.get("winner") if win_result else None,
    )
    await runtime._broadcast(room, result)


async def advance_after_results(runtime: "MirrorRuntime", room: "RoomRuntime") -> None:
    if room.phase != "results":
        return
    enter_pattern_phase(runtime, room)
    await runtime._broadcast(
        room,
        {
            "type": "nextRound",
            "roundNumber": room.round,
            "endsAt": room.phase_ends_at,
            "players": build_players(room, active_only=True),
        },
    )


async def play_again(runtime: "MirrorRuntime", room: "RoomRuntime", player: "PlayerConnection") -> None:
    if not player.is_host:
        raise NotHost()
    if room.phase != "ended":
        raise WrongPhase("Play again is only available after the game ends")

    runtime._clear_timers(room)
    for member in room.players.values():
        member.role = None
        member.eliminated = False
    room.phase = "lobby"
    room.round = 0
    room.patterns = {}
    room.votes = {}
    room.phase_ends_at = None
    room.last_result = None
    room.win_result = None
    runtime._mark_state_changed(room)

    await runtime._broadcast(room, {"type": "gameReset", "players": build_players(room)})
    runtime._log_ws_event("game_reset", roomCode=room.room_code, players=len(room.players))
