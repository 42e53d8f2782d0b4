from enum import Enum

from ai_services.sentiment_analyzer import SentimentScores

# A score at or above this counts as a real signal for mixed detection
SIGNIFICANT = 0.25


class SentimentCategory(str, Enum):
    POSITIVE = 'positive'
    NEGATIVE = 'negative'
    NEUTRAL = 'neutral'
    MIXED = 'mixed'

    def __str__(self):
        return self.value


def interpret(scores: SentimentScores) -> SentimentCategory:
    """
    Map provider confidence scores to a single sentiment category.

    Both positive and negative being significant wins over everything else,
    even a higher neutral score. Otherwise the category whose score is
    strictly greater than both others is chosen, and any tie for the top
    resolves to neutral.
    """
    positive = scores.positive
    negative = scores.negative
    neutral = scores.neutral

    if positive >= SIGNIFICANT and negative >= SIGNIFICANT:
        return SentimentCategory.MIXED

    if positive > negative and positive > neutral:
        return SentimentCategory.POSITIVE
    elif negative > positive and negative > neutral:
        return SentimentCategory.NEGATIVE
    return SentimentCategory.NEUTRAL
