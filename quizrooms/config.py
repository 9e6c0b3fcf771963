"""Configuration du serveur (variables d'environnement et fichier .env)."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Règles de jeu
    STARTING_SCORE: int = Field(7, ge=0)
    MIN_PLAYERS: int = Field(1, ge=1)
    ELIMINATION_MODE: bool = False
    SHUFFLE_QUESTIONS: bool = False
    RESULTS_DELIVERY: Literal["broadcast", "private"] = "broadcast"

    # Minuteries (secondes)
    QUESTION_DURATION_SEC: int = Field(20, gt=0)
    TICK_INTERVAL_SEC: float = Field(1.0, gt=0)
    PREGAME_DELAY_SEC: float = Field(3.0, ge=0)
    RESULTS_DELAY_SEC: float = Field(10.0, ge=0)
    # Suppression différée des parties terminées. None = jamais.
    FINISHED_ROOM_TTL_SEC: Optional[float] = Field(None, gt=0)

    # Banque de questions: chemin local ou URL http(s). None = banque embarquée.
    QUESTIONS_SOURCE: Optional[str] = None

    # Serveur
    CORS_ORIGINS: str = "*"
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    LOG_LEVEL: str = "info"

    @property
    def cors_origins(self) -> List[str] | str:
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        if not origins or "*" in origins:
            return "*"
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()
