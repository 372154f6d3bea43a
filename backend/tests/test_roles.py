import random
from collections import Counter

import pytest

from helpers import MockWebSocket
from mirror_wars.runtime_roles import apply_roles, assign_roles, mirror_count_for, shuffle_roles
from mirror_wars.runtime_types import PlayerConnection


@pytest.mark.parametrize(
    "player_count,expected_mirrors",
    [(3, 0), (4, 1), (5, 1), (6, 1), (7, 2), (8, 2)],
)
def test_mirror_count_is_floor_of_ratio(player_count, expected_mirrors):
    roles = assign_roles(player_count, 0.3)
    assert len(roles) == player_count
    assert roles.count("mirror") == expected_mirrors
    assert roles.count("original") == player_count - expected_mirrors


def test_mirror_count_follows_configured_ratio():
    assert mirror_count_for(5, 0.4) == 2
    assert mirror_count_for(3, 0.4) == 1
    assert mirror_count_for(0, 0.4) == 0


def test_every_seat_can_receive_the_mirror():
    rng = random.Random(7)
    seats = Counter()
    for _ in range(400):
        roles = assign_roles(4, 0.3, rng)
        seats[roles.index("mirror")] += 1
    assert set(seats) == {0, 1, 2, 3}


def test_shuffle_reaches_every_permutation():
    rng = random.Random(11)
    seen = {tuple(shuffle_roles(["a", "b", "c"], rng)) for _ in range(300)}
    assert len(seen) == 6


def test_shuffle_does_not_mutate_input():
    roles = ["mirror", "original", "original"]
    shuffle_roles(roles, random.Random(1))
    assert roles == ["mirror", "original", "original"]


def test_apply_roles_assigns_in_roster_order():
    players = [PlayerConnection(peer_id=f"p{i}", name=f"P{i}", websocket=MockWebSocket()) for i in range(7)]
    apply_roles(players, 0.3, random.Random(3))
    assert all(player.role in {"original", "mirror"} for player in players)
    assert sum(1 for player in players if player.role == "mirror") == 2
