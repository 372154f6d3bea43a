from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from mirror_wars.runtime_errors import RoomNotFound
from mirror_wars.runtime_utils import sanitize_room_code
from mirror_wars.schemas.rooms import RoomSummaryResponse

router = APIRouter(tags=["rooms"])


@router.get("/api/rooms/{room_code}", response_model=RoomSummaryResponse)
async def room_summary(room_code: str, request: Request) -> RoomSummaryResponse:
    runtime = request.app.state.runtime
    room_code_value = sanitize_room_code(room_code)
    if len(room_code_value) != 4:
        raise HTTPException(status_code=400, detail="Room code must be 4 digits")

    try:
        room = await runtime.registry.get_room(room_code_value)
    except RoomNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc

    async with room.lock:
        player_count = len(room.players)
        return RoomSummaryResponse(
            roomCode=room.room_code,
            phase=room.phase,
            round=room.round,
            playerCount=player_count,
            maxPlayers=runtime.settings.max_players,
            joinable=room.phase == "lobby" and player_count < runtime.settings.max_players,
        )
