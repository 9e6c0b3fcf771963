"""Endpoints HTTP (FastAPI): santé du serveur, salles et banque de questions."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .engine import GameEngine
from .messages import RoomSnapshot
from .questions import dump_questions


def create_http_app(engine: GameEngine) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # Arrêt: plus aucune minuterie ne doit survivre au processus
        await engine.shutdown()

    app = FastAPI(title="Quiz Rooms", lifespan=lifespan)

    origins = engine.settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if origins == "*" else origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "rooms": len(engine.registry)})

    @app.get("/api/rooms")
    async def list_rooms() -> JSONResponse:
        rooms = [RoomSnapshot.from_room(r).model_dump(by_alias=True, mode="json") for r in engine.registry]
        return JSONResponse(rooms)

    @app.get("/api/rooms/{room_id}")
    async def get_room(room_id: str) -> JSONResponse:
        room = engine.registry.get_room(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail="Room introuvable")
        return JSONResponse(RoomSnapshot.from_room(room).model_dump(by_alias=True, mode="json"))

    @app.get("/api/questions")
    async def get_questions() -> JSONResponse:
        return JSONResponse(dump_questions(engine.questions))

    return app
