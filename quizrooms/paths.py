"""Chemins communs du serveur de quiz."""

from __future__ import annotations

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"
QUESTIONS_PATH = DATA_DIR / "questions.json"
