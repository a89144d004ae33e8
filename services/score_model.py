# services/score_model.py

import math
from datetime import datetime, timezone
from typing import Optional

from models.user_model import SkillAssessment, Stats, SubjectStats

BASE_WEIGHT = 0.7
SUBJECT_WEIGHT = 0.3
FULL_WEIGHT_QUESTIONS = 10

TIERS = (
    (90, "Excellent"),
    (80, "Good"),
    (70, "Fair"),
    (50, "Average"),
)
LOWEST_TIER = "Needs improvement"


def clamp(value, min_value=0.0, max_value=100.0):
    return max(min_value, min(value, max_value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def tier_for(score: float) -> str:
    for threshold, label in TIERS:
        if score >= threshold:
            return label
    return LOWEST_TIER


def compute_skill_assessment(stats: Stats, now: Optional[datetime] = None) -> SkillAssessment:
    """
    Blend overall accuracy with each subject's accuracy.

    Subjects are folded in first-seen order (dict insertion order); each
    step keeps 70% of the running score and adds 30% of the subject's
    accuracy, scaled by how many questions back it (full weight at 10).
    """
    overall = 0.0
    if stats.total_questions > 0:
        overall = stats.correct_answers / stats.total_questions * 100

    subject_scores = {}
    for subject, data in stats.subject_stats.items():
        if data.total <= 0:
            continue
        accuracy = data.correct / data.total * 100
        subject_scores[subject] = round_half_up(accuracy)

        weight = min(data.total / FULL_WEIGHT_QUESTIONS, 1)
        overall = overall * BASE_WEIGHT + accuracy * SUBJECT_WEIGHT * weight

    overall = clamp(overall)

    return SkillAssessment(
        overall=round_half_up(overall),
        subjects=subject_scores,
        tier=tier_for(overall),
        last_updated=now or datetime.now(timezone.utc),
    )


def record_answer(stats: Stats, subject: str, is_correct: bool, now: Optional[datetime] = None) -> Stats:
    stats.questions_answered += 1
    stats.total_questions += 1
    if is_correct:
        stats.correct_answers += 1

    subject_stats = stats.subject_stats.setdefault(subject, SubjectStats())
    subject_stats.answered += 1
    subject_stats.total += 1
    if is_correct:
        subject_stats.correct += 1

    stats.skill_assessment = compute_skill_assessment(stats, now)
    return stats


def record_game(stats: Stats, score: int) -> Stats:
    stats.games_played += 1
    stats.total_score += score
    return stats


def record_best_score(stats: Stats, score: int) -> bool:
    """Raise best_score to ``score`` if strictly higher. Returns whether it changed."""
    if score > stats.best_score:
        stats.best_score = score
        return True
    return False
