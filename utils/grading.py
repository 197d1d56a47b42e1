from typing import Any, Dict, List, Optional, Tuple

from Levenshtein import ratio as lev_ratio

from config import load_config

DEFAULT_THRESHOLDS = {
    "perfect_threshold": 0.98,
    "good_threshold": 0.85,
    "pass_threshold": 0.70,
    "close_threshold": 0.50,
    "some_threshold": 0.20,
}


def _normalize(text: str) -> str:
    return " ".join(text.strip().lower().split())


def grade_thresholds(config: Optional[Dict[str, Any]] = None) -> List[Tuple[float, int]]:
    """Similarity floors paired with the SM-2 grade they earn, best first."""
    if not config:
        config = load_config()
    grading_config = config.get("grading", {})
    values = {key: float(grading_config.get(key, default)) for key, default in DEFAULT_THRESHOLDS.items()}
    return [
        (values["perfect_threshold"], 5),
        (values["good_threshold"], 4),
        (values["pass_threshold"], 3),
        (values["close_threshold"], 2),
        (values["some_threshold"], 1),
    ]


def grade_typed_answer(expected: str, typed: Optional[str], config: Optional[Dict[str, Any]] = None) -> int:
    """Grade a typed answer against the card's answer on the 0-5 recall scale."""
    if not typed or not typed.strip():
        return 0
    similarity = lev_ratio(_normalize(typed), _normalize(expected))
    for floor, grade in grade_thresholds(config):
        if similarity >= floor:
            return grade
    return 0
