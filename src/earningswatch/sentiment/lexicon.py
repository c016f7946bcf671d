from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from earningswatch.core.logger import get_logger
from earningswatch.core.models import Sentiment, SentimentResult
from earningswatch.sentiment.base import SentimentClient

log = get_logger("sentiment")

POSITIVE_TERMS: tuple[str, ...] = (
    "profit", "gain", "growth", "surge", "jump", "rally", "beat", "exceed",
    "strong", "boost", "rise", "climb", "soar", "bullish", "upgrade", "positive",
    "record", "high", "success", "outperform", "innovative", "breakthrough",
    "increase", "up", "better", "improved", "optimistic", "confident", "advance",
    "winning", "milestone", "achieve", "expand", "revenue", "earnings beat",
)

NEGATIVE_TERMS: tuple[str, ...] = (
    "loss", "fall", "drop", "decline", "plunge", "miss", "weak", "worry",
    "concern", "down", "bear", "bearish", "cut", "downgrade", "negative",
    "risk", "fail", "worst", "lawsuit", "investigation", "warning",
    "decrease", "lower", "disappointing", "missed", "below", "slump", "crash",
    "trouble", "problem", "crisis", "layoff", "bankruptcy", "debt", "losses",
)

# Raw hit difference that saturates the score at +/-1.
DEFAULT_DIVISOR = 3.0
DEFAULT_THRESHOLD = 0.15


def label_for(score: float, threshold: float = DEFAULT_THRESHOLD) -> Sentiment:
    if score > threshold:
        return "positive"
    if score < -threshold:
        return "negative"
    return "neutral"


def _compile(terms: tuple[str, ...]) -> list[re.Pattern[str]]:
    return [re.compile(r"\b" + re.escape(t.lower()) + r"\b") for t in terms]


@dataclass(frozen=True)
class Lexicon:
    """Term tables and calibration for keyword sentiment."""

    positive: tuple[str, ...] = POSITIVE_TERMS
    negative: tuple[str, ...] = NEGATIVE_TERMS
    divisor: float = DEFAULT_DIVISOR
    threshold: float = DEFAULT_THRESHOLD

    _pos_patterns: list[re.Pattern[str]] = field(init=False, repr=False, compare=False)
    _neg_patterns: list[re.Pattern[str]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.divisor <= 0:
            raise ValueError(f"divisor must be > 0, got {self.divisor}")
        object.__setattr__(self, "_pos_patterns", _compile(self.positive))
        object.__setattr__(self, "_neg_patterns", _compile(self.negative))

    def count(self, text: str) -> tuple[int, int]:
        """Whole-word hits of each table in lowercased ``text``."""
        lowered = text.lower()
        pos = sum(len(p.findall(lowered)) for p in self._pos_patterns)
        neg = sum(len(p.findall(lowered)) for p in self._neg_patterns)
        return pos, neg


class LexiconSentiment(SentimentClient):
    """Keyword-count sentiment scorer.

    Every provider without native sentiment labels goes through this one
    scorer, so the same text always gets the same score no matter where it
    came from. Score is ``(positive hits - negative hits) / divisor`` clamped
    to [-1, 1]; the label is positive above ``threshold``, negative below
    ``-threshold``, neutral otherwise.
    """

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or Lexicon()

    def analyze(self, text: str) -> SentimentResult:
        if not isinstance(text, str) or not text:
            return SentimentResult(score=0.0, sentiment="neutral")

        pos, neg = self.lexicon.count(text)
        raw = pos - neg
        score = max(-1.0, min(1.0, raw / self.lexicon.divisor))
        log.debug(f"sentiment pos={pos} neg={neg} raw={raw} score={score:.2f}")
        return SentimentResult(
            score=score,
            sentiment=label_for(score, self.lexicon.threshold),
            positive_count=pos,
            negative_count=neg,
        )


_default_scorer: Optional[LexiconSentiment] = None


def analyze_sentiment(text: str) -> SentimentResult:
    """Score ``text`` with the default lexicon."""
    global _default_scorer
    if _default_scorer is None:
        _default_scorer = LexiconSentiment()
    return _default_scorer.analyze(text)
