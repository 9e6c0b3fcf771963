"""Messages Socket.IO: un modèle par action entrante et par événement sortant.

Les clés circulent en camelCase (``roomId``, ``timeRemaining``...). Les
références de salle entrantes acceptent une simple chaîne ou un objet
``{"roomId": ...}`` (``gameId`` reste accepté pour les anciens clients).
Les événements adressés à une salle portent aussi ``gameId`` en sortie.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .state import PlayerState, Room


# --- Entrants -------------------------------------------------------------

class RoomRef(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    room_id: str = Field(min_length=1, validation_alias=AliasChoices("roomId", "gameId", "room_id"))

    @classmethod
    def parse(cls, data: Any):
        if isinstance(data, (str, int)) and not isinstance(data, bool):
            data = {"roomId": str(data)}
        return cls.model_validate(data)


class JoinRoomIn(RoomRef):
    player_name: str = Field(
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("playerName", "name", "player_name"),
    )


class SubmitAnswerIn(RoomRef):
    answer: int = Field(ge=0, validation_alias=AliasChoices("answer", "answerIndex"))


# --- Sortants -------------------------------------------------------------

class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Outbound(_Model):
    event: ClassVar[str]

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PlayerSnapshot(_Model):
    id: str
    name: str
    score: int
    previous_score: int
    has_answered: bool
    last_point_change: int
    eliminated: bool
    current_question_index: int

    @classmethod
    def from_player(cls, player: PlayerState) -> "PlayerSnapshot":
        return cls(
            id=player.connection_id,
            name=player.display_name,
            score=player.score,
            previous_score=player.previous_score,
            has_answered=player.has_answered,
            last_point_change=player.last_point_change,
            eliminated=player.eliminated,
            current_question_index=player.current_question_index,
        )


def roster(room: Room) -> List[PlayerSnapshot]:
    return [PlayerSnapshot.from_player(p) for p in room.players]


class RoomSnapshot(_Model):
    room_id: str
    host_id: str
    status: str
    players: List[PlayerSnapshot]
    question_index: int
    time_remaining: int
    created_at: datetime

    @classmethod
    def from_room(cls, room: Room) -> "RoomSnapshot":
        return cls(
            room_id=room.room_id,
            host_id=room.host_connection_id,
            status=room.status.value,
            players=roster(room),
            question_index=room.shared_question_index,
            time_remaining=room.time_remaining,
            created_at=room.created_at,
        )


class RoomAddressed(Outbound):
    room_id: str

    @computed_field(alias="gameId")
    @property
    def game_id(self) -> str:
        return self.room_id


class RoomCreated(RoomAddressed):
    event: ClassVar[str] = "room-created"
    room: RoomSnapshot


class ErrorEvent(Outbound):
    event: ClassVar[str] = "error"
    code: str
    message: str


class RoomError(ErrorEvent):
    event: ClassVar[str] = "room-error"


class JoinError(ErrorEvent):
    event: ClassVar[str] = "join-error"


class PlayerJoined(Outbound):
    event: ClassVar[str] = "player-joined"
    player: PlayerSnapshot
    players: List[PlayerSnapshot]


class JoinedRoom(RoomAddressed):
    event: ClassVar[str] = "joined-room"
    player: PlayerSnapshot
    players: List[PlayerSnapshot]


class GameStartedAdmin(RoomAddressed):
    event: ClassVar[str] = "game-started-admin"
    player_count: int
    total_questions: int


class GameStartedPlayer(RoomAddressed):
    event: ClassVar[str] = "game-started-player"


class NewQuestion(Outbound):
    event: ClassVar[str] = "new-question"
    question_id: Union[int, str]
    question: str
    options: List[str]
    question_number: int
    total_questions: int
    time_remaining: int


class TimeUpdate(Outbound):
    event: ClassVar[str] = "time-update"
    time_remaining: int


class PlayerAnswered(Outbound):
    event: ClassVar[str] = "player-answered"
    player_id: str
    player_name: str
    total_answered: int
    total_players: int


class PlayerResult(_Model):
    player_id: str
    player_name: str
    answered: bool
    answer: Optional[int]
    is_correct: bool
    correct_answer: Optional[int]
    previous_score: int
    new_score: int
    point_change: int
    eliminated: bool


class QuestionResults(Outbound):
    event: ClassVar[str] = "question-results"
    correct_answer: Optional[int]
    results: List[PlayerResult]
    eliminated: List[str] = Field(default_factory=list)


class LeaderboardEntry(_Model):
    player_id: str
    player_name: str
    score: int
    eliminated: bool

    @classmethod
    def from_player(cls, player: PlayerState) -> "LeaderboardEntry":
        return cls(
            player_id=player.connection_id,
            player_name=player.display_name,
            score=player.score,
            eliminated=player.eliminated,
        )


class GameEnded(Outbound):
    event: ClassVar[str] = "game-ended"
    reason: Literal["exhausted", "elimination"]
    final_scores: List[LeaderboardEntry]
    winner: Optional[LeaderboardEntry]
    eliminated_players: Optional[List[LeaderboardEntry]] = None


class PlayerLeft(Outbound):
    event: ClassVar[str] = "player-left"
    player_id: str
    player_name: str
    players: List[PlayerSnapshot]


class HostDisconnected(RoomAddressed):
    event: ClassVar[str] = "host-disconnected"


class RoomInfo(RoomAddressed):
    event: ClassVar[str] = "room-info"
    room: RoomSnapshot
