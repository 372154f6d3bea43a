from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, ValidationError

from mirror_wars.runtime_errors import InvalidPayload


class CreateRoomCommand(BaseModel):
    type: Literal["createRoom"]
    playerName: str = Field(default="", max_length=64)


class JoinRoomCommand(BaseModel):
    type: Literal["joinRoom"]
    roomCode: str | int = Field(default="")
    playerName: str = Field(default="", max_length=64)


class StartGameCommand(BaseModel):
    type: Literal["startGame"]


class SubmitPatternCommand(BaseModel):
    type: Literal["submitPattern"]
    # Shape is checked by the room so the client gets INVALID_PATTERN.
    pattern: Any = None


class SubmitVoteCommand(BaseModel):
    type: Literal["submitVote"]
    targetId: str = Field(
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("targetId", "votedPlayerId"),
    )


class PlayAgainCommand(BaseModel):
    type: Literal["playAgain"]


class LeaveRoomCommand(BaseModel):
    type: Literal["leaveRoom", "newGame"]


class GetStateCommand(BaseModel):
    type: Literal["getState"]


class PingCommand(BaseModel):
    type: Literal["ping"]


ClientCommand = Annotated[
    Union[
        CreateRoomCommand,
        JoinRoomCommand,
        StartGameCommand,
        SubmitPatternCommand,
        SubmitVoteCommand,
        PlayAgainCommand,
        LeaveRoomCommand,
        GetStateCommand,
        PingCommand,
    ],
    Field(discriminator="type"),
]

_command_adapter: TypeAdapter[ClientCommand] = TypeAdapter(ClientCommand)


def parse_command(data: dict[str, Any]) -> ClientCommand:
    try:
        return _command_adapter.validate_python(data)
    except ValidationError as exc:
        errors = exc.errors()
        first = errors[0] if errors else {}
        if first.get("type") in {"union_tag_invalid", "union_tag_not_found"}:
            raise InvalidPayload(f"Unknown message type: {data.get('type')!r}") from exc
        location = ".".join(str(part) for part in first.get("loc", ()) if part)
        detail = str(first.get("msg") or "invalid value")
        raise InvalidPayload(f"{location}: {detail}" if location else detail) from exc
