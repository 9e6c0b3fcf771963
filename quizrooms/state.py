"""Etat d'une partie: salle, joueurs et minuteries rattachées à la salle."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from .questions import QuestionRecord


class RoomStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


# Seules transitions autorisées (jamais de retour en arrière)
_NEXT_STATUS = {
    RoomStatus.WAITING: RoomStatus.PLAYING,
    RoomStatus.PLAYING: RoomStatus.FINISHED,
}


@dataclass
class PlayerState:
    connection_id: str
    display_name: str
    score: int = 0
    previous_score: int = 0
    has_answered: bool = False
    current_answer: Optional[int] = None
    last_point_change: int = 0
    eliminated: bool = False
    question_order: List[QuestionRecord] = field(default_factory=list)
    current_question_index: int = -1
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def current_question(self) -> Optional[QuestionRecord]:
        if 0 <= self.current_question_index < len(self.question_order):
            return self.question_order[self.current_question_index]
        return None

    @property
    def has_questions_left(self) -> bool:
        return self.current_question_index < len(self.question_order)

    def reset_for_question(self) -> None:
        """Passe à la question suivante et remet à zéro l'état de réponse."""
        self.current_question_index += 1
        self.has_answered = False
        self.current_answer = None
        self.previous_score = self.score
        self.last_point_change = 0


@dataclass
class Room:
    room_id: str
    host_connection_id: str
    players: List[PlayerState] = field(default_factory=list)
    status: RoomStatus = RoomStatus.WAITING
    shared_question_index: int = -1
    time_remaining: int = 0
    # Compte à rebours en cours (tick d'une seconde)
    question_timer: Optional[asyncio.Task[Any]] = None
    # Suite différée: délai d'avant-partie, écran de résultats ou nettoyage
    results_timer: Optional[asyncio.Task[Any]] = None
    last_eliminated: List[PlayerState] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_player(self, connection_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.connection_id == connection_id:
                return player
        return None

    def remove_player(self, connection_id: str) -> Optional[PlayerState]:
        player = self.get_player(connection_id)
        if player is not None:
            self.players.remove(player)
        return player

    @property
    def active_players(self) -> List[PlayerState]:
        return [p for p in self.players if not p.eliminated]

    def transition(self, status: RoomStatus) -> None:
        if _NEXT_STATUS.get(self.status) is not status:
            raise ValueError(f"Transition interdite: {self.status.value} -> {status.value}")
        self.status = status
