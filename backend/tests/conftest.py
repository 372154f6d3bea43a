from __future__ import annotations

from typing import Any, Callable

import pytest

from helpers import make_settings
from mirror_wars.runtime import MirrorRuntime
from mirror_wars.runtime_registry import RoomRegistry


@pytest.fixture
async def make_runtime():
    created: list[MirrorRuntime] = []

    def factory(**overrides: Any) -> MirrorRuntime:
        runtime = MirrorRuntime(RoomRegistry(), settings=make_settings(**overrides))
        created.append(runtime)
        return runtime

    yield factory

    for runtime in created:
        await runtime.shutdown()


@pytest.fixture
async def runtime(make_runtime: Callable[..., MirrorRuntime]) -> MirrorRuntime:
    return make_runtime()
