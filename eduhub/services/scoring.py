"""Per-question quiz scoring and leaderboard ranking for challenges."""
from __future__ import annotations

from typing import Sequence

# One point per correct answer; unanswered questions score nothing
POINTS_PER_CORRECT = 1


def grade_answers(questions: Sequence[dict], answers: Sequence[int | None]) -> list[bool]:
    """Return per-question correctness for the submitted option indexes."""
    results = []
    for i, question in enumerate(questions):
        chosen = answers[i] if i < len(answers) else None
        results.append(chosen is not None and chosen == question["answer_index"])
    return results


def compute_score(correct: Sequence[bool]) -> int:
    return sum(POINTS_PER_CORRECT for ok in correct if ok)


def accuracy_percentage(score: int, question_count: int) -> float:
    """Correct share as a percentage rounded to one decimal."""
    if question_count <= 0:
        return 0.0
    return round(score / (question_count * POINTS_PER_CORRECT) * 100, 1)


def _sort_key(participant) -> tuple[int, float]:
    elapsed = getattr(participant, "time_elapsed", None)
    return (-participant.score, elapsed if elapsed is not None else float("inf"))


def rank_participants(participants: Sequence) -> list[tuple[int, object]]:
    """Rank by score desc, then time elapsed asc. Ties share a rank (1, 2, 2, 4)."""
    ordered = sorted(participants, key=_sort_key)
    ranked = []
    previous_key = None
    rank = 0
    for position, participant in enumerate(ordered, start=1):
        key = _sort_key(participant)
        if key != previous_key:
            rank = position
            previous_key = key
        ranked.append((rank, participant))
    return ranked
