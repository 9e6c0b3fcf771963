"""Initialisation Socket.IO asynchrone."""

from __future__ import annotations

import socketio

from .config import Settings


def create_sio(settings: Settings) -> socketio.AsyncServer:
    # Async Server pour ASGI
    return socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=settings.cors_origins)
