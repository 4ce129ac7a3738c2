"""Quiz engine: shuffled options, answer locking and scoring."""
from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from grammarhub.quiz.catalog import DEFAULT_UNLOCK_AT, Question
from grammarhub.utils.rounding import percentage

MCQ_BLANK = re.compile(r"_{2,}")
FILL_BLANK = re.compile(r"_{2,}|\.{3,}|…")
BLANK_MARKER = "_____"


class QuizLockedError(RuntimeError):
    """Raised when an answer is changed after submission."""


class IncompleteQuizError(ValueError):
    """Submit attempted while questions are still unanswered."""

    def __init__(self, first_unanswered: int, answered: int, total: int):
        self.first_unanswered = first_unanswered
        self.answered = answered
        self.total = total
        super().__init__(f"Answer all questions first ({answered}/{total}); question {first_unanswered + 1} is unanswered")


def render_prompt(text: str, engine: str = "mcq", marker: str = BLANK_MARKER) -> str:
    """Replace blank placeholders in a question with a uniform marker."""
    pattern = FILL_BLANK if engine == "fill" else MCQ_BLANK
    return pattern.sub(marker, text)


def shuffle(items: list, rng: Optional[random.Random] = None) -> list:
    """Fisher-Yates shuffle in place; returns ``items`` for chaining."""
    rand = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rand.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


@dataclass
class Option:
    text: str
    original_index: int


@dataclass
class PresentedQuestion:
    question: Question
    options: List[Option]

    @property
    def correct_position(self) -> int:
        # Located by original index so repeated option texts stay unambiguous.
        for pos, option in enumerate(self.options):
            if option.original_index == self.question.answer:
                return pos
        raise ValueError("correct option missing from shuffled options")


@dataclass
class ReviewItem:
    index: int
    prompt: str
    selected: str
    correct: str
    is_correct: bool


@dataclass
class QuizResult:
    score: int
    total: int
    percentage: int
    passed: bool
    time_taken: int
    review: List[ReviewItem] = field(default_factory=list)


class QuizSession:
    """One attempt at a question set."""

    def __init__(
        self,
        questions: List[Question],
        engine: str = "mcq",
        unlock_at: int = DEFAULT_UNLOCK_AT,
        rng: Optional[random.Random] = None,
    ):
        if not questions:
            raise ValueError("a quiz needs at least one question")
        self.engine = engine
        self.unlock_at = unlock_at
        self.submitted = False
        self.answers: Dict[int, int] = {}
        self.presented: List[PresentedQuestion] = []
        for question in questions:
            options = [Option(text, idx) for idx, text in enumerate(question.options)]
            self.presented.append(PresentedQuestion(question, shuffle(options, rng)))

    @property
    def total(self) -> int:
        return len(self.presented)

    @property
    def answered(self) -> int:
        return len(self.answers)

    def prompt(self, index: int) -> str:
        return render_prompt(self.presented[index].question.q, self.engine)

    def options(self, index: int) -> List[str]:
        return [option.text for option in self.presented[index].options]

    def select(self, index: int, position: int) -> bool:
        """Record the option at ``position`` (shuffled order) for a question.

        Returns False without changing anything once the quiz is submitted.
        """
        if self.submitted:
            return False
        presented = self.presented[index]
        if not 0 <= position < len(presented.options):
            raise IndexError(f"option {position} out of range for question {index}")
        self.answers[index] = position
        return True

    def first_unanswered(self) -> Optional[int]:
        for idx in range(self.total):
            if idx not in self.answers:
                return idx
        return None

    def submit(self, time_taken: int = 0) -> QuizResult:
        if self.submitted:
            raise QuizLockedError("quiz already submitted")
        missing = self.first_unanswered()
        if missing is not None:
            raise IncompleteQuizError(missing, self.answered, self.total)

        self.submitted = True
        score = 0
        review = []
        for idx, presented in enumerate(self.presented):
            selected = self.answers[idx]
            correct = presented.correct_position
            hit = presented.options[selected].original_index == presented.question.answer
            score += int(hit)
            review.append(ReviewItem(
                index=idx,
                prompt=self.prompt(idx),
                selected=presented.options[selected].text,
                correct=presented.options[correct].text,
                is_correct=hit,
            ))
        pct = percentage(score, self.total)
        return QuizResult(
            score=score,
            total=self.total,
            percentage=pct,
            passed=pct >= self.unlock_at,
            time_taken=time_taken,
            review=review,
        )
