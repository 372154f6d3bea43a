from __future__ import annotations

import random
from typing import Mapping


def tally_votes(votes: Mapping[str, str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for target_id in votes.values():
        counts[target_id] = counts.get(target_id, 0) + 1
    return counts


def leading_targets(counts: Mapping[str, int]) -> list[str]:
    max_votes = 0
    tied: list[str] = []
    for target_id, count in counts.items():
        if count > max_votes:
            max_votes = count
            tied = [target_id]
        elif count == max_votes:
            tied.append(target_id)
    return tied


def resolve_votes(
    votes: Mapping[str, str],
    rng: random.Random | None = None,
) -> str | None:
    """Pick the most voted target, breaking ties uniformly at random."""
    tied = leading_targets(tally_votes(votes))
    if not tied:
        return None
    if len(tied) == 1:
        return tied[0]
    return (rng or random).choice(tied)
