"""Human-readable rating descriptions."""
from typing import Any, Dict

MISSION_OPENNESS_DESCRIPTIONS: Dict[str, Dict[int, str]] = {
    "en": {
        1: "Resistant to mission work, not interested in outreach",
        2: "Minimal interest, basic cooperation only",
        3: "Moderate interest, aware of mission work",
        4: "Actively interested in mission work, good cooperation",
        5: "Strongly mission-minded, proactive in evangelism",
    },
    "ro": {
        1: "Resistent la lucrarea de misiune, nu este interesat de outreach",
        2: "Interes minim, doar cooperare de bază",
        3: "Interes moderat, conștientizare de misiune",
        4: "Interes activ în lucrarea de misiune, cooperare bună",
        5: "Foarte orientat spre misiune, proactiv în evanghelizare",
    },
}

HOSPITALITY_DESCRIPTIONS: Dict[str, Dict[int, str]] = {
    "en": {
        1: "Inhospitable, uncooperative, hostile environment",
        2: "Minimal hospitality, basic courtesy only",
        3: "Standard hospitality, meets basic expectations",
        4: "Welcoming atmosphere, good cooperation",
        5: "Exceptional hospitality, exceeds expectations",
    },
    "ro": {
        1: "Neospitalier, necooperant, mediu ostil",
        2: "Ospitalitate minimală, doar curtoazie de bază",
        3: "Ospitalitate standard, îndeplinește așteptările de bază",
        4: "Atmosferă primitoare, cooperare bună",
        5: "Ospitalitate excepțională, depășește așteptările",
    },
}

STAR_LABELS: Dict[int, str] = {
    1: "Poor",
    2: "Fair",
    3: "Good",
    4: "Very good",
    5: "Excellent",
}

DEFAULT_LANGUAGE = "en"


def _level(rating: Any):
    """Return the rating as an int level, or None when it has no description."""
    if isinstance(rating, bool):
        return None
    try:
        level = int(rating)
    except (TypeError, ValueError, OverflowError):
        return None
    if level != rating:
        return None
    return level


def _describe(table: Dict[str, Dict[int, str]], rating: Any, lang: str) -> str:
    level = _level(rating)
    if level is None:
        return ""
    descriptions = table.get(lang, table[DEFAULT_LANGUAGE])
    return descriptions.get(level, "")


def get_mission_openness_description(rating: Any, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Describe a mission openness rating.

    Args:
        rating: Rating level (1-5)
        lang: "en" or "ro"; unknown languages fall back to English

    Returns:
        Description, or "" when the rating is outside 1-5
    """
    return _describe(MISSION_OPENNESS_DESCRIPTIONS, rating, lang)


def get_hospitality_description(rating: Any, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Describe a hospitality rating.

    Args:
        rating: Rating level (1-5)
        lang: "en" or "ro"; unknown languages fall back to English

    Returns:
        Description, or "" when the rating is outside 1-5
    """
    return _describe(HOSPITALITY_DESCRIPTIONS, rating, lang)


def rating_label(star_rating: Any) -> str:
    """Short label for a star rating, "" when out of range."""
    level = _level(star_rating)
    if level is None:
        return ""
    return STAR_LABELS.get(level, "")
