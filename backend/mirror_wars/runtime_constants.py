from __future__ import annotations

from .runtime_types import Phase, Role

ROLE_ORIGINAL: Role = "original"
ROLE_MIRROR: Role = "mirror"
ROOM_CODE_MIN = 1000
ROOM_CODE_MAX = 9999
ROOM_CODE_SPACE = ROOM_CODE_MAX - ROOM_CODE_MIN + 1
PLAYER_NAME_MIN_LENGTH = 2
PLAYER_NAME_MAX_LENGTH = 20
IN_GAME_PHASES: frozenset[Phase] = frozenset({"role-reveal", "pattern", "voting", "results"})
ROOM_TIMER_KEYS = ("roleReveal", "patternDeadline", "results")

ORIGINALS_WIN_MESSAGE = "All Mirrors have been found! Originals win!"
MIRRORS_WIN_MESSAGE = "Mirrors have taken over! Mirrors win!"
