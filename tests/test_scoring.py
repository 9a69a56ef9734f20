"""Tests for per-question scoring and leaderboard ranking."""
from types import SimpleNamespace

from eduhub.services.scoring import accuracy_percentage, compute_score, grade_answers, rank_participants

QUESTIONS = [
    {"prompt": "2 + 2", "options": ["3", "4"], "answer_index": 1},
    {"prompt": "Capital of Zambia", "options": ["Lusaka", "Ndola", "Kitwe"], "answer_index": 0},
    {"prompt": "H2O is", "options": ["salt", "water"], "answer_index": 1},
]


def _p(user_id, score, elapsed):
    return SimpleNamespace(user_id=user_id, score=score, time_elapsed=elapsed)


class TestGrading:

    def test_grade_answers(self):
        assert grade_answers(QUESTIONS, [1, 2, 1]) == [True, False, True]

    def test_skipped_and_missing_answers_are_wrong(self):
        assert grade_answers(QUESTIONS, [None, 0]) == [False, True, False]

    def test_score_and_accuracy(self):
        correct = grade_answers(QUESTIONS, [1, 0, 0])
        score = compute_score(correct)
        assert score == 2
        assert accuracy_percentage(score, len(QUESTIONS)) == 66.7
        assert accuracy_percentage(0, 0) == 0.0


class TestRanking:

    def test_score_then_speed(self):
        ranked = rank_participants([_p(1, 2, 50), _p(2, 3, 90), _p(3, 2, 30)])
        assert [(rank, p.user_id) for rank, p in ranked] == [(1, 2), (2, 3), (3, 1)]

    def test_ties_share_rank(self):
        ranked = rank_participants([_p(1, 2, 40), _p(2, 2, 40), _p(3, 1, 10), _p(4, 3, 99)])
        assert [(rank, p.user_id) for rank, p in ranked] == [(1, 4), (2, 1), (2, 2), (4, 3)]

    def test_missing_time_sorts_last_within_score(self):
        ranked = rank_participants([_p(1, 2, None), _p(2, 2, 100)])
        assert [p.user_id for _, p in ranked] == [2, 1]
