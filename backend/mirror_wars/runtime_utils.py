from __future__ import annotations

import random
import re
import time
import uuid
from typing import Any

from .runtime_constants import (
    PLAYER_NAME_MAX_LENGTH,
    PLAYER_NAME_MIN_LENGTH,
    ROOM_CODE_MAX,
    ROOM_CODE_MIN,
)


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def random_room_code(rng: random.Random | None = None) -> str:
    source = rng or random
    return str(source.randint(ROOM_CODE_MIN, ROOM_CODE_MAX))


def sanitize_room_code(raw: Any) -> str:
    """Return the code when it is exactly four ASCII digits, else an empty string."""
    value = str(raw if raw is not None else "").strip()
    return value if re.fullmatch(r"[0-9]{4}", value) else ""


def sanitize_player_name(raw: Any) -> str:
    value = str(raw or "").strip()
    return re.sub(r"\s+", " ", value)


def normalize_player_name(name: str | None) -> str:
    return str(name or "").strip().lower()


def is_valid_player_name(name: str) -> bool:
    return PLAYER_NAME_MIN_LENGTH <= len(name) <= PLAYER_NAME_MAX_LENGTH
