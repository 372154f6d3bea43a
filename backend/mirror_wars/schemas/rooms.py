from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RoomSummaryResponse(BaseModel):
    roomCode: str = Field(min_length=4, max_length=4)
    phase: Literal["lobby", "role-reveal", "pattern", "voting", "results", "ended"]
    round: int = Field(ge=0)
    playerCount: int = Field(ge=0)
    maxPlayers: int = Field(ge=1)
    joinable: bool
