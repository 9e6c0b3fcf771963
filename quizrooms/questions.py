"""Chargement de la banque de questions (fichier JSON local ou URL distante).

Le format sur disque est une liste d'objets
``{id, question, options, correctAnswer}`` (ou un objet ``{"questions": [...]}``).
``dump_questions`` renvoie exactement ce format, de sorte qu'un chargement
suivi d'une re-sérialisation redonne les mêmes enregistrements.
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TypeVar, Union

import requests
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from .paths import QUESTIONS_PATH

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QuestionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Union[int, str]
    prompt: str = Field(alias="question")
    options: List[str] = Field(min_length=1)
    correct_option_index: int = Field(alias="correctAnswer")

    @model_validator(mode="after")
    def _check_correct_index(self) -> "QuestionRecord":
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_option_index} hors des options (0..{len(self.options) - 1})"
            )
        return self


_records = TypeAdapter(List[QuestionRecord])


def parse_questions(data: Any) -> List[QuestionRecord]:
    """Valide une liste brute (ou ``{"questions": [...]}``) d'enregistrements."""
    if isinstance(data, dict) and "questions" in data:
        data = data["questions"]
    return _records.validate_python(data)


def load_questions(source: Union[str, Path, None] = None) -> List[QuestionRecord]:
    """Charge la banque depuis un fichier ou une URL http(s)."""
    if source is None:
        source = QUESTIONS_PATH
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        return fetch_questions(source)
    with open(source, encoding="utf-8") as f:
        return parse_questions(json.load(f))


def fetch_questions(url: str) -> List[QuestionRecord]:
    """Récupère une banque distante. En cas d'échec, renvoie une liste vide."""
    try:
        resp = requests.get(url, timeout=10)
        resp.raise_for_status()
        return parse_questions(resp.json())
    except (requests.RequestException, ValueError) as e:
        # ValidationError hérite de ValueError
        logger.error("Erreur lors du chargement des questions depuis %s: %s", url, e)
        return []


def dump_questions(questions: Sequence[QuestionRecord]) -> List[Dict[str, Any]]:
    return [q.model_dump(by_alias=True) for q in questions]


def fisher_yates(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Renvoie une permutation uniforme de ``items`` (la séquence d'origine est intacte)."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result
