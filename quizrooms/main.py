"""Point d'entrée ASGI: assemble Socket.IO, le moteur de jeu et l'API HTTP."""

from __future__ import annotations

import logging
from typing import Optional

import socketio

from .config import Settings, get_settings
from .engine import GameEngine
from .events import register_handlers
from .http import create_http_app
from .questions import load_questions
from .registry import SessionRegistry
from .sockets import create_sio

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> socketio.ASGIApp:
    settings = settings or get_settings()

    questions = load_questions(settings.QUESTIONS_SOURCE)
    logger.info("%d questions chargées", len(questions))

    sio = create_sio(settings)
    engine = GameEngine(sio, SessionRegistry(), questions, settings)
    register_handlers(sio, engine)

    # Application ASGI combinée
    return socketio.ASGIApp(sio, create_http_app(engine))


app = create_app()
