import re
from typing import List

from pydantic import BaseModel

KEYWORD_PATTERN = re.compile(
    r"\b(design|implement|architecture|system|database|api|performance|scale|security|test|"
    r"function|component|service|method|class|data|user|application|code|process|solution|"
    r"approach|consider|ensure|handle|manage|optimize|develop|build|create|use|would|could|should)\b",
    re.IGNORECASE,
)
EXAMPLE_PATTERN = re.compile(
    r"\b(example|instance|case|scenario|experience|project|worked|built|implemented|used|applied)\b",
    re.IGNORECASE,
)
STRUCTURE_PATTERN = re.compile(
    r"\b(first|second|third|then|next|finally|also|additionally|furthermore|however|therefore|because)\b",
    re.IGNORECASE,
)
SENTENCE_SPLIT = re.compile(r"[.!?]")

MIN_DETAILED_CHARS = 50
LONG_ANSWER_CHARS = 200
VERY_LONG_ANSWER_CHARS = 400


class AnswerFeatures(BaseModel):
    """Signals extracted from one free-text answer."""
    length: int
    word_count: int
    avg_word_length: float
    unique_ratio: float
    has_keywords: bool
    has_technical_depth: bool
    has_examples: bool
    has_structure: bool
    is_random: bool
    is_repeated: bool
    is_too_short: bool
    is_gibberish: bool


def extract_features(answer: str) -> AnswerFeatures:
    text = answer.strip()
    words = text.split()
    word_count = len(words)
    avg_word_length = sum(len(w) for w in words) / max(word_count, 1)
    unique_ratio = len({w.lower() for w in words}) / max(word_count, 1)
    has_keywords = KEYWORD_PATTERN.search(text) is not None

    deep_sentences = [s for s in SENTENCE_SPLIT.split(text) if len(s.strip()) > 20]

    # One long run of letters, or many tiny tokens
    compact = re.sub(r"\s", "", text)
    is_random = bool(
        (word_count <= 2 and re.fullmatch(r"[a-z]{20,}", compact, re.IGNORECASE))
        or (word_count >= 3 and avg_word_length < 3)
    )

    return AnswerFeatures(
        length=len(text),
        word_count=word_count,
        avg_word_length=avg_word_length,
        unique_ratio=unique_ratio,
        has_keywords=has_keywords,
        has_technical_depth=len(deep_sentences) > 2,
        has_examples=EXAMPLE_PATTERN.search(text) is not None,
        has_structure=STRUCTURE_PATTERN.search(text) is not None,
        is_random=is_random,
        is_repeated=unique_ratio < 0.5 and word_count > 10,
        is_too_short=len(text) < MIN_DETAILED_CHARS,
        is_gibberish=word_count > 5 and not has_keywords and avg_word_length < 4,
    )


def calculate_length_bonus(features: AnswerFeatures) -> int:
    bonus = 0
    if features.length > LONG_ANSWER_CHARS:
        bonus += 10
    if features.length > VERY_LONG_ANSWER_CHARS:
        bonus += 8
    return bonus


def calculate_difficulty_adjustment(features: AnswerFeatures, difficulty: str) -> int:
    """
    Senior answers are expected to show depth; junior answers get credit for vocabulary.
    """
    if difficulty == "Senior" and not features.has_technical_depth:
        return -5
    if difficulty == "Junior" and features.has_keywords:
        return 5
    return 0


def match_expected_points(answer: str, expected_points: List[str]) -> List[str]:
    """
    Expected points whose significant words (4+ letters) appear in the answer.
    """
    lowered = answer.lower()
    matched = []
    for point in expected_points:
        terms = [t for t in re.findall(r"[a-zA-Z]+", point.lower()) if len(t) >= 4]
        if terms and any(t in lowered for t in terms):
            matched.append(point)
    return matched


def match_red_flags(answer: str, catalog: List[str]) -> List[str]:
    """Configured red-flag phrases that literally appear in the answer."""
    lowered = answer.lower()
    return [entry for entry in catalog if entry and entry.lower() in lowered]
