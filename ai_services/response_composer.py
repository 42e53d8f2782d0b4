import random
from types import MappingProxyType
from typing import List

from ai_services.sentiment_interpreter import SentimentCategory

GUESS_PHRASES = MappingProxyType({
    SentimentCategory.POSITIVE: (
        "Looks like this was a moment worth remembering.",
        "There seems to be a little spark of joy here.",
    ),
    SentimentCategory.NEGATIVE: (
        "This seems to be weighing on you quite a bit.",
        "It feels like you're not having the best time right now.",
    ),
    SentimentCategory.MIXED: (
        "There's a lot of mixed feelings in here.",
        "This seems like a complicated thing to feel.",
    ),
    SentimentCategory.NEUTRAL: (
        "Looks like you're thinking something over.",
        "A quiet, peaceful moment.",
    ),
})

SUGGESTED_TAGS = MappingProxyType({
    SentimentCategory.POSITIVE: ("#cheerful", "#grateful", "#happy"),
    SentimentCategory.NEGATIVE: ("#sad", "#tired", "#angry"),
    SentimentCategory.MIXED: ("#hard_to_describe", "#bittersweet", "#confused"),
    SentimentCategory.NEUTRAL: ("#reflective", "#peaceful", "#empty"),
})

DEFAULT_PHRASE = "We've noted how you're feeling."


def _as_category(value):
    try:
        return SentimentCategory(value)
    except ValueError:
        return None


class ResponseComposer:
    """Turns a sentiment category into a guess phrase and suggested tags."""

    def __init__(self, phrases=GUESS_PHRASES, tags=SUGGESTED_TAGS, rng: random.Random = None):
        self.phrases = phrases
        self.tags = tags
        self.rng = rng or random.Random()

    def phrase_for(self, category) -> str:
        candidates = self.phrases.get(_as_category(category))
        if not candidates:
            return DEFAULT_PHRASE
        return self.rng.choice(candidates)

    def tags_for(self, category) -> List[str]:
        return list(self.tags.get(_as_category(category), ()))
