"""
Question-set catalog backed by JSON files.

Layout under the data directory::

    <subject>/config.json
    <subject>/<level>/set<N>.json

``config.json`` describes the subject card and engine; every set file is a
JSON list of ``{"q": str, "options": [str, ...], "answer": int}`` objects.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from grammarhub.utils.settings import data_dir_from_env

logger = logging.getLogger(__name__)

LEVEL_ORDER = ("preprimary", "primary", "middle", "high")
LEVEL_LABELS = {
    "preprimary": "Pre-Primary",
    "primary": "Primary",
    "middle": "Middle",
    "high": "High",
}
LEVEL_ABBR = {"preprimary": "PP", "primary": "P", "middle": "M", "high": "H"}
DEFAULT_UNLOCK_AT = 80


class QuestionSetError(Exception):
    """A question set is missing, unreadable or has no usable questions."""


def level_abbr(level: str) -> str:
    return LEVEL_ABBR.get(level, level[:1].upper())


def level_label(level: str) -> str:
    return LEVEL_LABELS.get(level, level[:1].upper() + level[1:])


class Question(BaseModel):
    q: str
    options: List[str]
    answer: int


class SubjectConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    order: int = 0
    title: str = ""
    description: str = ""
    icon: str = ""
    status: Literal["online", "offline"] = "online"
    engine: Literal["mcq", "fill"] = "mcq"
    unlock_at: int = Field(default=DEFAULT_UNLOCK_AT, alias="unlockAt")
    set_counts: Dict[str, int] = Field(default_factory=dict, alias="setCounts")

    @property
    def is_online(self) -> bool:
        return self.status == "online"

    def levels(self) -> List[str]:
        """Levels that have at least one set, in curriculum order."""
        return [lvl for lvl in LEVEL_ORDER if self.set_counts.get(lvl, 0) > 0]

    def as_card(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order": self.order,
            "title": self.title or self.id.replace("-", " "),
            "description": self.description,
            "icon": self.icon,
            "status": self.status,
            "engine": self.engine,
            "unlockAt": self.unlock_at,
            "setCounts": {lvl: self.set_counts[lvl] for lvl in LEVEL_ORDER if lvl in self.set_counts},
        }


def _answer_index(answer: Any) -> Optional[int]:
    # bool is an int subclass; JSON true/false is not an index.
    if isinstance(answer, bool):
        return None
    if isinstance(answer, float) and answer.is_integer():
        return int(answer)
    return answer if isinstance(answer, int) else None


def _is_valid_question(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    text = item.get("q")
    options = item.get("options")
    answer = _answer_index(item.get("answer"))
    if not isinstance(text, str) or not text.strip():
        return False
    if not isinstance(options, list) or len(options) < 2:
        return False
    return answer is not None and 0 <= answer < len(options)


def validate_questions(raw: Any) -> List[Question]:
    """Keep only well-formed questions; anything else is silently dropped."""
    if not isinstance(raw, list):
        return []
    kept = []
    for item in raw:
        if not _is_valid_question(item):
            continue
        kept.append(Question(q=item["q"], options=[str(o) for o in item["options"]], answer=_answer_index(item["answer"])))
    dropped = len(raw) - len(kept)
    if dropped:
        logger.warning("Dropped %s malformed question(s)", dropped)
    return kept


class QuestionCatalog:
    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else data_dir_from_env()

    def _subject_dir(self, subject: str) -> Path:
        # Reject path segments so lookups stay inside the data directory.
        if not subject or "/" in subject or "\\" in subject or subject.startswith("."):
            raise QuestionSetError(f"Invalid subject '{subject}'")
        return self.data_dir / subject

    def load_subject(self, subject: str) -> SubjectConfig:
        path = self._subject_dir(subject) / "config.json"
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise QuestionSetError(f"Subject '{subject}' not found") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise QuestionSetError(f"Unreadable config for subject '{subject}': {exc}") from exc
        if isinstance(raw, dict):
            raw.setdefault("id", subject)
        try:
            return SubjectConfig.model_validate(raw)
        except ValidationError as exc:
            raise QuestionSetError(f"Invalid config for subject '{subject}': {exc}") from exc

    def list_subjects(self) -> List[SubjectConfig]:
        """Subjects sorted by their card order; broken configs are skipped."""
        if not self.data_dir.is_dir():
            return []
        subjects = []
        for child in sorted(self.data_dir.iterdir()):
            if not (child / "config.json").is_file():
                continue
            try:
                subjects.append(self.load_subject(child.name))
            except QuestionSetError as exc:
                logger.warning("Skipping subject %s: %s", child.name, exc)
        subjects.sort(key=lambda cfg: (cfg.order, cfg.id))
        return subjects

    def load_question_set(self, subject: str, level: str, set_number: int | str) -> List[Question]:
        if level not in LEVEL_ORDER:
            raise QuestionSetError(f"Unknown level '{level}'")
        set_name = str(set_number).strip()
        if not set_name.isdigit():
            raise QuestionSetError(f"Invalid set '{set_number}'")
        path = self._subject_dir(subject) / level / f"set{set_name}.json"
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise QuestionSetError(f"Set {set_name} not found") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise QuestionSetError(f"Set {set_name} is unreadable: {exc}") from exc
        questions = validate_questions(raw)
        if not questions:
            raise QuestionSetError("No valid questions found in this set.")
        return questions
