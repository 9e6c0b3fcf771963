"""Gestion des événements Socket.IO entrants (création, inscription, réponses...).

Chaque handler valide la charge utile, délègue au moteur et renvoie les
erreurs métier à la seule connexion appelante.
"""

from __future__ import annotations

import logging
from typing import Any, Type

from pydantic import ValidationError

from .engine import GameEngine
from .errors import GameError
from .messages import ErrorEvent, JoinError, JoinRoomIn, RoomError, RoomRef, SubmitAnswerIn

logger = logging.getLogger(__name__)


def _parse(model: Type[RoomRef], sid: str, event: str, data: Any):
    try:
        return model.parse(data)
    except ValidationError as exc:
        logger.warning("Charge utile invalide pour %s depuis %s: %s", event, sid, exc.errors())
        return None


def register_handlers(sio: Any, engine: GameEngine) -> None:
    """Attache les handlers au serveur ``sio`` pour le moteur donné."""

    async def report(error_type: Type[ErrorEvent], sid: str, exc: GameError) -> None:
        message = error_type(code=exc.code, message=exc.message)
        await sio.emit(message.event, message.payload(), to=sid)

    @sio.event
    async def connect(sid: str, _environ: Any, _auth: Any = None) -> None:
        logger.info("Client connecté : %s", sid)

    @sio.event
    async def disconnect(sid: str, *_args: Any) -> None:
        logger.info("Client déconnecté : %s", sid)
        await engine.disconnect(sid)

    @sio.on("create-room")
    async def create_room(sid: str, data: Any = None) -> None:
        ref = _parse(RoomRef, sid, "create-room", data)
        if ref is None:
            return
        try:
            await engine.create_room(ref.room_id, sid)
        except GameError as exc:
            await report(RoomError, sid, exc)

    @sio.on("join-room")
    async def join_room(sid: str, data: Any = None) -> None:
        payload = _parse(JoinRoomIn, sid, "join-room", data)
        if payload is None:
            return
        try:
            await engine.join_room(payload.room_id, sid, payload.player_name)
        except GameError as exc:
            await report(JoinError, sid, exc)

    @sio.on("start-game")
    async def start_game(sid: str, data: Any = None) -> None:
        ref = _parse(RoomRef, sid, "start-game", data)
        if ref is None:
            return
        try:
            await engine.start_game(ref.room_id, sid)
        except GameError as exc:
            await report(ErrorEvent, sid, exc)

    @sio.on("submit-answer")
    async def submit_answer(sid: str, data: Any = None) -> None:
        payload = _parse(SubmitAnswerIn, sid, "submit-answer", data)
        if payload is None:
            return
        if not await engine.submit_answer(payload.room_id, sid, payload.answer):
            logger.debug("Réponse ignorée de %s pour la room %s", sid, payload.room_id)

    @sio.on("get-room-info")
    async def get_room_info(sid: str, data: Any = None) -> None:
        ref = _parse(RoomRef, sid, "get-room-info", data)
        if ref is None:
            return
        try:
            await engine.room_info(ref.room_id, sid)
        except GameError as exc:
            await report(RoomError, sid, exc)
