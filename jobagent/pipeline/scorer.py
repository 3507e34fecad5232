"""Skill-overlap relevance scoring for job listings.

Score range: 45-100. The floor keeps every listing presentable even when no
skill matches.
"""

import re

SCORE_FLOOR = 45
SCORE_CEILING = 100

_WORD_SPLIT = re.compile(r"\W+")


def score_relevance(job_description: str, skills: list[str]) -> int:
    """Score how many of ``skills`` appear in ``job_description``.

    A skill matches when some description word contains it, or it contains
    the word (case-insensitive, both directions).

    Args:
        job_description: Free-text job description.
        skills: Candidate skills; each entry counts at most once.

    Returns:
        Integer score in [45, 100].
    """
    words = [w for w in _WORD_SPLIT.split(job_description.lower()) if w]
    matches = 0
    for skill in skills:
        needle = skill.lower()
        if any(needle in word or word in needle for word in words):
            matches += 1

    base = min(round(matches / max(len(skills), 1) * 100), SCORE_CEILING)
    return max(base, SCORE_FLOOR)


def clamp_score(value: float) -> int:
    """Round and clamp an externally supplied score to [0, 100]."""
    return int(max(0, min(100, round(value))))
