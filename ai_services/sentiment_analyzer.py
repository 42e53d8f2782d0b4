import asyncio
import atexit
import hashlib
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import requests
from cachelib import SimpleCache
from textblob import TextBlob

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {"your-azure-key-here"}
PLACEHOLDER_ENDPOINTS = {"https://your-endpoint.cognitiveservices.azure.com/"}


@dataclass(frozen=True)
class SentimentScores:
    positive: float
    negative: float
    neutral: float


# "Unknown, lean neutral"
FALLBACK_SCORES = SentimentScores(positive=0.33, negative=0.33, neutral=0.34)


class SentimentProviderError(Exception):
    """Raised by a sentiment client when the provider gives no usable scores."""


class AzureTextAnalyticsClient:
    """Calls the Azure Text Analytics sentiment REST endpoint."""

    API_PATH = "/text/analytics/v3.1/sentiment"

    def __init__(self, endpoint: str, api_key: str, timeout: float = 5, session=None):
        self.url = endpoint.rstrip("/") + self.API_PATH
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def score(self, text: str) -> SentimentScores:
        payload = {"documents": [{"id": "1", "language": "en", "text": text}]}
        headers = {
            'Content-Type': 'application/json',
            'Ocp-Apim-Subscription-Key': self.api_key,
        }
        response = self.session.post(self.url, headers=headers, json=payload, timeout=self.timeout)
        response.raise_for_status()

        try:
            document = response.json()["documents"][0]
            confidence = document["confidenceScores"]
            return SentimentScores(
                positive=float(confidence["positive"]),
                negative=float(confidence["negative"]),
                neutral=float(confidence["neutral"]),
            )
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SentimentProviderError(f"Malformed sentiment response: {e}") from e


class TextBlobSentimentClient:
    """Local scorer built on TextBlob polarity (-1 to 1)."""

    def score(self, text: str) -> SentimentScores:
        polarity = TextBlob(text).sentiment.polarity
        return SentimentScores(
            positive=round(max(polarity, 0.0), 4),
            negative=round(max(-polarity, 0.0), 4),
            neutral=round(1.0 - abs(polarity), 4),
        )


def build_client(config):
    """Return the sentiment client described by ``config`` or None for fallback mode."""
    provider = (config.get("SENTIMENT_PROVIDER") or "azure").lower()
    if provider == "textblob":
        return TextBlobSentimentClient()

    endpoint = config.get("AI_SERVICE_ENDPOINT")
    api_key = config.get("AI_SERVICE_KEY")
    if not endpoint or not api_key or endpoint in PLACEHOLDER_ENDPOINTS or api_key in PLACEHOLDER_KEYS:
        return None
    return AzureTextAnalyticsClient(endpoint, api_key, timeout=config.get("SENTIMENT_TIMEOUT", 5))


class SentimentGateway:
    """
    Scores text through a remote sentiment client with caching, retries and a
    fixed neutral-leaning fallback. ``score_text`` never raises for provider
    failures.
    """

    def __init__(self, client=None, cache=None, max_attempts: int = 3,
                 retry_delay: float = 1.0, cache_timeout: int = 3600, sleep=time.sleep):
        self.client = client
        self.cache = cache if cache is not None else SimpleCache(threshold=1000)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.cache_timeout = cache_timeout
        self._sleep = sleep
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def init_app(self, app, cache_backend=None):
        config = app.config
        self.client = build_client(config)
        self.max_attempts = config.get("SENTIMENT_MAX_ATTEMPTS", 3)
        self.retry_delay = config.get("SENTIMENT_RETRY_DELAY", 1.0)
        self.cache_timeout = config.get("SENTIMENT_CACHE_TIMEOUT", 3600)
        if cache_backend is None:
            cache_backend = SimpleCache(
                threshold=config.get("SENTIMENT_CACHE_THRESHOLD", 1000),
                default_timeout=self.cache_timeout,
            )
        self.cache = cache_backend

        if self.is_configured:
            app.logger.info(f"Sentiment client configured: {type(self.client).__name__}")
        else:
            app.logger.warning("Sentiment service not configured. Using fallback sentiment analysis.")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    @staticmethod
    def cache_key(text: str) -> str:
        return "sentiment:" + hashlib.sha256(text.encode("utf-8")).hexdigest()

    def score_text(self, text: str) -> SentimentScores:
        if not self.is_configured:
            logger.info("Using fallback sentiment analysis")
            return FALLBACK_SCORES

        key = self.cache_key(text)
        with self._lock:
            cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Sentiment cache hit")
            return cached

        scores = self._score_with_retry(text)
        if scores is None:
            return FALLBACK_SCORES

        with self._lock:
            self.cache.set(key, scores, timeout=self.cache_timeout)
        return scores

    def _score_with_retry(self, text: str) -> Optional[SentimentScores]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.debug(f"Calling sentiment service, attempt {attempt}")
                return self.client.score(text)
            except Exception as e:
                logger.warning(f"Sentiment service call failed (attempt {attempt}/{self.max_attempts}): {e}")
                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay)

        logger.error("Sentiment service unavailable after retries. Using fallback sentiment analysis.")
        return None

    def score_text_async(self, text: str) -> "asyncio.Future[SentimentScores]":
        """
        Dispatch ``score_text`` to the worker pool from a running event loop.

        The returned future is shielded: cancelling it leaves the dispatched
        call running and its result is dropped.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=5, thread_name_prefix="sentiment")
                atexit.register(self.close)
        return asyncio.shield(loop.run_in_executor(self._executor, self.score_text, text))

    def close(self):
        """Shut down the async worker pool. A later async call starts a new one."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            atexit.unregister(self.close)
            executor.shutdown(wait=True)
