"""Registre des salles du processus (identifiant -> Room)."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from .errors import RoomAlreadyExists
from .state import Room

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Source unique des salles. Construit au démarrage, vidé à l'arrêt.

    Les accès sont sérialisés par la boucle asyncio: aucun verrou n'est
    nécessaire. Avant ``delete_room``, l'appelant doit avoir annulé les
    minuteries de la salle.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}

    def create_room(self, room_id: str, host_id: str) -> Room:
        if room_id in self._rooms:
            raise RoomAlreadyExists()
        room = Room(room_id=room_id, host_connection_id=host_id)
        self._rooms[room_id] = room
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def delete_room(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(room_id, None)
        if room is not None:
            logger.info("Room %s supprimée du registre", room_id)
        return room

    def rooms(self) -> List[Room]:
        # copie: permet de supprimer pendant l'itération
        return list(self._rooms.values())

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __iter__(self) -> Iterator[Room]:
        return iter(self.rooms())

    def __len__(self) -> int:
        return len(self._rooms)
