"""Skill/industry overlap score used to rank recommended counterparts."""
import math
from typing import Iterable, List


def _clean(values: Iterable) -> List[str]:
    return [str(v).lower() for v in values or [] if v is not None]


def compute_match_score(skills: Iterable, industries: Iterable) -> int:
    """
    Percentage of freelancer skills that contain at least one investor industry
    (case-insensitive substring), rounded half up to an int in [0, 100].
    """
    skill_list = _clean(skills)
    industry_list = [i for i in _clean(industries) if i.strip()]
    matches = sum(
        1 for skill in skill_list
        if any(industry in skill for industry in industry_list)
    )
    score = matches / max(len(skill_list), 1) * 100
    return max(0, min(int(math.floor(score + 0.5)), 100))


def rank_by_score(candidates: List[dict], key: str = "match_score") -> List[dict]:
    """Highest score first; ties keep their original order."""
    return sorted(candidates, key=lambda c: c[key], reverse=True)
