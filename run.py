#!/usr/bin/env python3
"""
Script de démarrage du serveur de quiz
"""
import logging

import uvicorn

from quizrooms.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from quizrooms.main import app

    print("🎯 Démarrage du serveur de quiz...")
    print(f"🌐 Socket.IO disponible sur: http://localhost:{settings.PORT}")

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
