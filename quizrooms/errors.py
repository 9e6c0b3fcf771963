"""Erreurs métier renvoyées au client à l'origine de la demande."""

from __future__ import annotations


class GameError(Exception):
    code = "GameError"
    default_message = "Erreur de jeu"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RoomAlreadyExists(GameError):
    code = "RoomAlreadyExists"
    default_message = "Cette room existe déjà"


class RoomNotFound(GameError):
    code = "RoomNotFound"
    default_message = "Room introuvable"


class GameAlreadyStarted(GameError):
    code = "GameAlreadyStarted"
    default_message = "La partie a déjà commencé"


class NotHost(GameError):
    code = "NotHost"
    default_message = "Seul l'hôte peut démarrer la partie"


class InsufficientPlayers(GameError):
    code = "InsufficientPlayers"
    default_message = "Pas assez de joueurs pour commencer"
