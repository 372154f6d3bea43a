from __future__ import annotations

from typing import Any, Iterable

from .runtime_constants import (
    MIRRORS_WIN_MESSAGE,
    ORIGINALS_WIN_MESSAGE,
    ROLE_MIRROR,
    ROLE_ORIGINAL,
)
from .runtime_types import PlayerConnection


def count_active_roles(players: Iterable[PlayerConnection]) -> dict[str, int]:
    originals = 0
    mirrors = 0
    for player in players:
        if player.eliminated:
            continue
        if player.role == ROLE_ORIGINAL:
            originals += 1
        elif player.role == ROLE_MIRROR:
            mirrors += 1
    return {"originals": originals, "mirrors": mirrors}


def evaluate_win(players: Iterable[PlayerConnection]) -> dict[str, Any] | None:
    counts = count_active_roles(players)
    if counts["mirrors"] == 0:
        return {"winner": "originals", "message": ORIGINALS_WIN_MESSAGE, **counts}
    if counts["mirrors"] >= counts["originals"]:
        return {"winner": "mirrors", "message": MIRRORS_WIN_MESSAGE, **counts}
    return None
