import pytest

from helpers import MockWebSocket
from mirror_wars.runtime_errors import CapacityError, RoomNotFound
from mirror_wars.runtime_registry import RoomRegistry


class FixedRandom:
    """randint stand-in that replays a fixed sequence."""

    def __init__(self, values):
        self.values = list(values)

    def randint(self, low, high):
        value = self.values.pop(0) if len(self.values) > 1 else self.values[0]
        assert low <= value <= high
        return value


async def test_create_room_registers_lobby_with_host():
    registry = RoomRegistry()
    room, host = await registry.create_room("Alice", MockWebSocket())

    assert len(room.room_code) == 4 and room.room_code.isdigit()
    assert 1000 <= int(room.room_code) <= 9999
    assert room.phase == "lobby"
    assert room.host_peer_id == host.peer_id
    assert host.is_host
    assert list(room.players) == [host.peer_id]
    assert await registry.get_room(room.room_code) is room


async def test_code_collision_is_retried():
    registry = RoomRegistry(rng=FixedRandom([1234, 1234, 4321]))
    first, _ = await registry.create_room("Alice", MockWebSocket())
    second, _ = await registry.create_room("Bob", MockWebSocket())
    assert first.room_code == "1234"
    assert second.room_code == "4321"


async def test_capacity_error_after_retry_cap():
    registry = RoomRegistry(code_attempts=3, rng=FixedRandom([1234]))
    await registry.create_room("Alice", MockWebSocket())
    with pytest.raises(CapacityError):
        await registry.create_room("Bob", MockWebSocket())
    assert registry.active_rooms_count == 1


async def test_remove_room_only_removes_matching_instance():
    registry = RoomRegistry()
    room, _ = await registry.create_room("Alice", MockWebSocket())
    other, _ = await registry.create_room("Bob", MockWebSocket())

    assert not await registry.remove_room(room.room_code, other)
    assert await registry.remove_room(room.room_code, room)
    with pytest.raises(RoomNotFound):
        await registry.get_room(room.room_code)


async def test_closed_room_is_not_found():
    registry = RoomRegistry()
    room, _ = await registry.create_room("Alice", MockWebSocket())
    room.closed = True
    with pytest.raises(RoomNotFound):
        await registry.get_room(room.room_code)
