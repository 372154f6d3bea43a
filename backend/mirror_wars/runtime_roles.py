from __future__ import annotations

import math
import random
from typing import Iterable

from .runtime_constants import ROLE_MIRROR, ROLE_ORIGINAL
from .runtime_types import PlayerConnection, Role


def mirror_count_for(player_count: int, ratio: float) -> int:
    if player_count <= 0:
        return 0
    return min(player_count, int(math.floor(player_count * ratio)))


def shuffle_roles(roles: list[Role], rng: random.Random | None = None) -> list[Role]:
    source = rng or random
    shuffled = list(roles)
    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def assign_roles(
    player_count: int,
    ratio: float,
    rng: random.Random | None = None,
) -> list[Role]:
    """Return ``player_count`` roles with exactly ``floor(n * ratio)`` mirrors.

    Only the order is random; the mirror count is fixed by ``player_count``
    and ``ratio``.
    """
    mirrors = mirror_count_for(player_count, ratio)
    roles: list[Role] = [ROLE_MIRROR] * mirrors + [ROLE_ORIGINAL] * (player_count - mirrors)
    return shuffle_roles(roles, rng)


def apply_roles(
    players: Iterable[PlayerConnection],
    ratio: float,
    rng: random.Random | None = None,
) -> list[PlayerConnection]:
    roster = list(players)
    for player, role in zip(roster, assign_roles(len(roster), ratio, rng)):
        player.role = role
    return roster
