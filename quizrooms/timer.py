"""Minuteries asyncio rattachées à une salle (annulation et suites différées)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


async def stop_timer(task: Optional[asyncio.Task[Any]]) -> None:
    """Annule une minuterie et attend sa fin.

    Sans effet si la tâche est terminée ou si c'est la tâche courante (une
    suite qui arrête sa propre salle ne peut pas s'attendre elle-même).
    """
    if task is None or task.done() or task is asyncio.current_task():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def _log_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Minuterie %s en échec", task.get_name(), exc_info=exc)


def spawn(coro: Awaitable[Any], name: str | None = None) -> asyncio.Task[Any]:
    """Lance une tâche de fond dont l'échec éventuel est journalisé."""
    task = asyncio.create_task(coro, name=name)
    task.add_done_callback(_log_failure)
    return task


def call_later(delay: float, callback: Callable[[], Awaitable[Any]], name: str | None = None) -> asyncio.Task[Any]:
    """Planifie ``callback`` après ``delay`` secondes et renvoie la tâche."""

    async def runner() -> None:
        await asyncio.sleep(delay)
        await callback()

    return spawn(runner(), name=name)


async def countdown(
    interval: float,
    tick: Callable[[], Awaitable[Optional[int]]],
    on_expired: Callable[[], Awaitable[Any]],
) -> None:
    """Boucle de compte à rebours: appelle ``tick`` à chaque ``interval``.

    ``tick`` renvoie le temps restant, ou ``None`` pour interrompre la boucle
    (salle disparue entre deux ticks). A zéro, la boucle appelle ``on_expired``.
    """
    while True:
        await asyncio.sleep(interval)
        remaining = await tick()
        if remaining is None:
            return
        if remaining <= 0:
            await on_expired()
            return
