from __future__ import annotations

from typing import Any, Mapping, Sequence

from .runtime_errors import InvalidPattern


def normalize_pattern(raw: Any, grid_cells: int) -> list[int]:
    """Validate a submitted tap sequence against the grid.

    A pattern is one or more distinct cell indices in ``[0, grid_cells)``.
    """
    if not isinstance(raw, (list, tuple)):
        raise InvalidPattern("Pattern must be a list of cell indices")
    if not raw:
        raise InvalidPattern("Pattern must contain at least one cell")
    if len(raw) > grid_cells:
        raise InvalidPattern(f"Pattern cannot be longer than {grid_cells} cells")

    cells: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPattern("Pattern cells must be integers")
        if value < 0 or value >= grid_cells:
            raise InvalidPattern(f"Pattern cell {value} is outside the grid")
        if value in cells:
            raise InvalidPattern(f"Pattern cell {value} was tapped twice")
        cells.append(value)
    return cells


def pattern_similarity(first: Sequence[int] | None, second: Sequence[int] | None) -> float:
    if first is None or second is None:
        return 0.0
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    matches = sum(1 for a, b in zip(first, second) if a == b)
    return matches / longest


def analyze_patterns(patterns: Mapping[str, Sequence[int]]) -> dict[str, float]:
    """Mean similarity of each pattern to every other one; high means likely imitation."""
    peer_ids = list(patterns)
    scores: dict[str, float] = {}
    for peer_id in peer_ids:
        others = [other for other in peer_ids if other != peer_id]
        if not others:
            scores[peer_id] = 0.0
            continue
        total = sum(pattern_similarity(patterns[peer_id], patterns[other]) for other in others)
        scores[peer_id] = round(total / len(others), 4)
    return scores
