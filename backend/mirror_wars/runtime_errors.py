from __future__ import annotations


class RoomError(Exception):
    """Recoverable per-request failure; the room is left untouched."""

    code = "ROOM_ERROR"
    default_message = "Request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class NotFound(RoomError):
    code = "NOT_FOUND"
    default_message = "Not found"


class RoomNotFound(NotFound):
    code = "ROOM_NOT_FOUND"
    default_message = "Room not found"


class UnknownParticipant(NotFound):
    code = "UNKNOWN_PARTICIPANT"
    default_message = "You are not an active player in this room"


class UnknownTarget(NotFound):
    code = "UNKNOWN_TARGET"
    default_message = "Vote target is not an active player"


class Forbidden(RoomError):
    code = "FORBIDDEN"
    default_message = "Action not allowed"


class NotHost(Forbidden):
    code = "NOT_HOST"
    default_message = "Only the host can do that"


class InvalidPhase(RoomError):
    code = "INVALID_PHASE"
    default_message = "Action not available in the current phase"


class WrongPhase(InvalidPhase):
    code = "WRONG_PHASE"


class AlreadyStarted(InvalidPhase):
    code = "ALREADY_STARTED"
    default_message = "Game already started"


class GameInProgress(InvalidPhase):
    code = "GAME_IN_PROGRESS"
    default_message = "Game already in progress"


class InsufficientPlayers(RoomError):
    code = "INSUFFICIENT_PLAYERS"
    default_message = "Not enough players to start"


class RoomFull(RoomError):
    code = "ROOM_FULL"
    default_message = "Room is full"


class DuplicateName(RoomError):
    code = "DUPLICATE_NAME"
    default_message = "A player with that name already exists"


class CapacityError(RoomError):
    code = "CAPACITY"
    default_message = "No room codes available, try again later"


class InvalidPayload(RoomError):
    code = "INVALID_PAYLOAD"
    default_message = "Malformed request"


class InvalidPattern(InvalidPayload):
    code = "INVALID_PATTERN"
    default_message = "Pattern is not valid"


class AlreadyInRoom(InvalidPhase):
    code = "ALREADY_IN_ROOM"
    default_message = "Leave your current room first"


class NotInRoom(NotFound):
    code = "NOT_IN_ROOM"
    default_message = "You are not in a room"


class InvalidName(InvalidPayload):
    code = "INVALID_NAME"
    default_message = "Name must be between 2 and 20 characters"
