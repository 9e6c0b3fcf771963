"""Moteur de jeu: cycle question -> compte à rebours -> résultats -> fin de partie.

Toutes les mutations passent par la boucle asyncio. Les seuls points de
reprise entre deux étapes sont les minuteries de la salle: le délai
d'avant-partie, le tick d'une seconde et l'écran de résultats. Chaque suite
vérifie que la salle existe encore avant d'agir.
"""

from __future__ import annotations

import logging
import random
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .config import Settings
from .errors import GameAlreadyStarted, InsufficientPlayers, NotHost, RoomNotFound
from .messages import (
    GameEnded,
    GameStartedAdmin,
    GameStartedPlayer,
    HostDisconnected,
    JoinedRoom,
    LeaderboardEntry,
    NewQuestion,
    Outbound,
    PlayerAnswered,
    PlayerJoined,
    PlayerLeft,
    PlayerResult,
    PlayerSnapshot,
    QuestionResults,
    RoomCreated,
    RoomInfo,
    RoomSnapshot,
    TimeUpdate,
    roster,
)
from .questions import QuestionRecord, fisher_yates
from .registry import SessionRegistry
from .state import PlayerState, Room, RoomStatus
from .timer import call_later, countdown, spawn, stop_timer

logger = logging.getLogger(__name__)

REASON_EXHAUSTED = "exhausted"
REASON_ELIMINATION = "elimination"


class GameEngine:
    """Pilote les salles du registre et diffuse les événements via ``sio``.

    ``sio`` est le serveur Socket.IO (ou tout objet offrant ``emit``,
    ``enter_room`` et ``close_room`` avec les mêmes signatures).
    """

    def __init__(
        self,
        sio: Any,
        registry: SessionRegistry,
        questions: Sequence[QuestionRecord],
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.sio = sio
        self.registry = registry
        self.questions: List[QuestionRecord] = list(questions)
        self.settings = settings
        self.rng = rng or random.Random()

    async def _send(self, message: Outbound, **kwargs: Any) -> None:
        await self.sio.emit(message.event, message.payload(), **kwargs)

    def get_room(self, room_id: str) -> Room:
        room = self.registry.get_room(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    # --- Salles et joueurs ------------------------------------------------

    async def create_room(self, room_id: str, host_id: str) -> Room:
        room = self.registry.create_room(room_id, host_id)
        room.time_remaining = self.settings.QUESTION_DURATION_SEC
        await self.sio.enter_room(host_id, room_id)
        await self._send(RoomCreated(room_id=room_id, room=RoomSnapshot.from_room(room)), to=host_id)
        logger.info("Room %s créée par %s", room_id, host_id)
        return room

    async def room_info(self, room_id: str, connection_id: str) -> Room:
        room = self.get_room(room_id)
        await self._send(RoomInfo(room_id=room_id, room=RoomSnapshot.from_room(room)), to=connection_id)
        return room

    async def join_room(self, room_id: str, connection_id: str, display_name: str) -> PlayerState:
        room = self.get_room(room_id)

        player = room.get_player(connection_id)
        if player is not None:
            # Même connexion: on reconfirme sans créer de doublon
            await self._send(
                JoinedRoom(room_id=room_id, player=PlayerSnapshot.from_player(player), players=roster(room)),
                to=connection_id,
            )
            return player

        if room.status is not RoomStatus.WAITING:
            raise GameAlreadyStarted()

        if self.settings.SHUFFLE_QUESTIONS:
            order = fisher_yates(self.questions, self.rng)
        else:
            order = list(self.questions)
        start = self.settings.STARTING_SCORE
        player = PlayerState(
            connection_id=connection_id,
            display_name=display_name,
            score=start,
            previous_score=start,
            question_order=order,
        )
        room.players.append(player)
        await self.sio.enter_room(connection_id, room_id)

        snapshot = PlayerSnapshot.from_player(player)
        players = roster(room)
        await self._send(PlayerJoined(player=snapshot, players=players), to=room_id)
        await self._send(JoinedRoom(room_id=room_id, player=snapshot, players=players), to=connection_id)
        logger.info("%s (%s) a rejoint la room %s", display_name, connection_id, room_id)
        return player

    # --- Déroulement de la partie -----------------------------------------

    async def start_game(self, room_id: str, requester_id: str) -> Room:
        room = self.get_room(room_id)
        if requester_id != room.host_connection_id:
            raise NotHost()
        if room.status is not RoomStatus.WAITING:
            raise GameAlreadyStarted()
        minimum = self.settings.MIN_PLAYERS
        if len(room.players) < minimum:
            raise InsufficientPlayers(f"Il faut au moins {minimum} joueur(s) pour commencer")

        room.transition(RoomStatus.PLAYING)
        room.shared_question_index = -1

        await self._send(
            GameStartedAdmin(room_id=room_id, player_count=len(room.players), total_questions=len(self.questions)),
            to=room.host_connection_id,
        )
        await self._send(GameStartedPlayer(room_id=room_id), to=room_id, skip_sid=room.host_connection_id)

        await self._schedule(room, self.settings.PREGAME_DELAY_SEC, partial(self.advance_question, room_id), "pregame")
        logger.info("Partie %s démarrée avec %d joueurs", room_id, len(room.players))
        return room

    async def advance_question(self, room_id: str) -> None:
        room = self.registry.get_room(room_id)
        if room is None or room.status is not RoomStatus.PLAYING:
            return

        active = room.active_players
        if not active:
            reason = REASON_ELIMINATION if self.settings.ELIMINATION_MODE else REASON_EXHAUSTED
            await self.end_game(room_id, reason)
            return

        for player in active:
            player.reset_for_question()
        room.shared_question_index += 1

        if all(not p.has_questions_left for p in active):
            await self.end_game(room_id)
            return
        room.last_eliminated = []

        duration = self.settings.QUESTION_DURATION_SEC
        room.time_remaining = duration

        if self.settings.SHUFFLE_QUESTIONS:
            for player in active:
                question = player.current_question
                if question is not None:
                    await self._send(self._question_message(player, question, duration), to=player.connection_id)
        else:
            lead = next(p for p in active if p.current_question is not None)
            await self._send(self._question_message(lead, lead.current_question, duration), to=room_id)

        await self._start_countdown(room)
        logger.info("Room %s: question %d envoyée", room_id, room.shared_question_index + 1)

    def _question_message(self, player: PlayerState, question: QuestionRecord, duration: int) -> NewQuestion:
        return NewQuestion(
            question_id=question.id,
            question=question.prompt,
            options=list(question.options),
            question_number=player.current_question_index + 1,
            total_questions=len(player.question_order),
            time_remaining=duration,
        )

    async def submit_answer(self, room_id: str, connection_id: str, answer_index: int) -> bool:
        """Enregistre une réponse. Renvoie False si elle est ignorée (jamais d'erreur)."""
        room = self.registry.get_room(room_id)
        if room is None or room.status is not RoomStatus.PLAYING or room.question_timer is None:
            return False
        player = room.get_player(connection_id)
        if player is None or player.has_answered or player.eliminated:
            return False
        question = player.current_question
        if question is None or not 0 <= answer_index < len(question.options):
            return False

        player.has_answered = True
        player.current_answer = answer_index

        active = room.active_players
        await self._send(
            PlayerAnswered(
                player_id=player.connection_id,
                player_name=player.display_name,
                total_answered=sum(1 for p in active if p.has_answered),
                total_players=len(active),
            ),
            to=room_id,
        )
        logger.debug("%s a répondu: %s", player.display_name, answer_index)
        return True

    async def end_question(self, room_id: str) -> None:
        room = self.registry.get_room(room_id)
        if room is None or room.status is not RoomStatus.PLAYING or room.question_timer is None:
            return
        # question close: plus aucune réponse acceptée à partir d'ici
        timer, room.question_timer = room.question_timer, None
        await stop_timer(timer)
        if self.registry.get_room(room_id) is not room:
            return

        results: List[PlayerResult] = []
        eliminated_now: List[PlayerState] = []
        for player in room.players:
            was_eliminated = player.eliminated
            results.append(self._score_player(player))
            if player.eliminated and not was_eliminated:
                eliminated_now.append(player)
        room.last_eliminated = eliminated_now
        eliminated_ids = [p.connection_id for p in eliminated_now]

        answers = {r.correct_answer for r in results if r.correct_answer is not None}
        shared_answer = answers.pop() if len(answers) == 1 else None

        if self.settings.RESULTS_DELIVERY == "private":
            for result in results:
                own = [result.player_id] if result.player_id in eliminated_ids else []
                await self._send(
                    QuestionResults(correct_answer=result.correct_answer, results=[result], eliminated=own),
                    to=result.player_id,
                )
            if room.get_player(room.host_connection_id) is None:
                await self._send(
                    QuestionResults(correct_answer=shared_answer, results=results, eliminated=eliminated_ids),
                    to=room.host_connection_id,
                )
        else:
            await self._send(
                QuestionResults(correct_answer=shared_answer, results=results, eliminated=eliminated_ids),
                to=room_id,
            )

        if self.registry.get_room(room_id) is not room:
            return
        if self.settings.ELIMINATION_MODE and len(room.active_players) <= 1:
            following = self.end_game_with_elimination
        else:
            following = self.advance_question
        await self._schedule(room, self.settings.RESULTS_DELAY_SEC, partial(following, room_id), "results")
        logger.info("Room %s: résultats de la question %d", room_id, room.shared_question_index + 1)

    def _score_player(self, player: PlayerState) -> PlayerResult:
        """Applique la règle symétrique: +1 si correct, -1 sinon (plancher à 0)."""
        if player.eliminated:
            return PlayerResult(
                player_id=player.connection_id,
                player_name=player.display_name,
                answered=False,
                answer=None,
                is_correct=False,
                correct_answer=None,
                previous_score=player.score,
                new_score=player.score,
                point_change=0,
                eliminated=True,
            )

        question = player.current_question
        correct = question.correct_option_index if question is not None else None
        is_correct = player.has_answered and player.current_answer == correct
        if question is not None:
            if is_correct:
                player.score += 1
                player.last_point_change = 1
            else:
                player.score = max(0, player.score - 1)
                player.last_point_change = -1
            if self.settings.ELIMINATION_MODE and player.score <= 0:
                player.eliminated = True

        return PlayerResult(
            player_id=player.connection_id,
            player_name=player.display_name,
            answered=player.has_answered,
            answer=player.current_answer,
            is_correct=is_correct,
            correct_answer=correct,
            previous_score=player.previous_score,
            new_score=player.score,
            point_change=player.last_point_change,
            eliminated=player.eliminated,
        )

    async def end_game(self, room_id: str, reason: str = REASON_EXHAUSTED) -> None:
        room = self.registry.get_room(room_id)
        if room is None or room.status is not RoomStatus.PLAYING:
            return
        room.transition(RoomStatus.FINISHED)
        await self._cancel_timers(room)

        ranked = sorted(room.players, key=lambda p: (p.eliminated, -p.score))
        board = [LeaderboardEntry.from_player(p) for p in ranked]
        winner = next((entry for entry in board if not entry.eliminated), board[0] if board else None)
        eliminated_players = None
        if self.settings.ELIMINATION_MODE:
            eliminated_players = [LeaderboardEntry.from_player(p) for p in room.last_eliminated]

        await self._send(
            GameEnded(reason=reason, final_scores=board, winner=winner, eliminated_players=eliminated_players),
            to=room_id,
        )
        logger.info("Partie %s terminée (%s)", room_id, reason)

        ttl = self.settings.FINISHED_ROOM_TTL_SEC
        if ttl is not None and self.registry.get_room(room_id) is room:
            await self._schedule(room, ttl, partial(self._reap, room_id), "reap")

    async def end_game_with_elimination(self, room_id: str) -> None:
        await self.end_game(room_id, REASON_ELIMINATION)

    async def _reap(self, room_id: str) -> None:
        room = self.registry.get_room(room_id)
        if room is not None and room.status is RoomStatus.FINISHED:
            room.results_timer = None
            self.registry.delete_room(room_id)
            await self.sio.close_room(room_id)

    # --- Déconnexions et arrêt --------------------------------------------

    async def disconnect(self, connection_id: str) -> None:
        """Ferme les salles dont la connexion est l'hôte, la retire des autres."""
        for room in self.registry.rooms():
            if room.host_connection_id == connection_id:
                await self._cancel_timers(room)
                self.registry.delete_room(room.room_id)
                await self._send(HostDisconnected(room_id=room.room_id), to=room.room_id)
                await self.sio.close_room(room.room_id)
                logger.info("Room %s supprimée (hôte déconnecté)", room.room_id)
                continue

            player = room.remove_player(connection_id)
            if player is not None:
                await self._send(
                    PlayerLeft(player_id=connection_id, player_name=player.display_name, players=roster(room)),
                    to=room.room_id,
                )
                logger.info("%s a quitté la room %s", player.display_name, room.room_id)

    async def shutdown(self) -> None:
        for room in self.registry.rooms():
            await self._cancel_timers(room)
            self.registry.delete_room(room.room_id)

    # --- Minuteries -------------------------------------------------------

    async def _schedule(
        self, room: Room, delay: float, callback: Callable[[], Awaitable[Any]], label: str
    ) -> None:
        await stop_timer(room.results_timer)
        room.results_timer = call_later(delay, callback, name=f"{label}:{room.room_id}")

    async def _start_countdown(self, room: Room) -> None:
        await stop_timer(room.question_timer)
        if self.registry.get_room(room.room_id) is not room:
            return
        room.question_timer = spawn(
            countdown(
                self.settings.TICK_INTERVAL_SEC,
                partial(self._tick, room.room_id),
                partial(self.end_question, room.room_id),
            ),
            name=f"countdown:{room.room_id}",
        )

    async def _tick(self, room_id: str) -> Optional[int]:
        room = self.registry.get_room(room_id)
        if room is None or room.status is not RoomStatus.PLAYING:
            return None
        room.time_remaining -= 1
        await self._send(TimeUpdate(time_remaining=room.time_remaining), to=room_id)
        return room.time_remaining

    async def _cancel_timers(self, room: Room) -> None:
        await stop_timer(room.question_timer)
        await stop_timer(room.results_timer)
        room.question_timer = None
        room.results_timer = None
