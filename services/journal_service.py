import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError

from ai_services.response_composer import ResponseComposer
from ai_services.sentiment_interpreter import interpret
from models.journal import JournalEntry, Tag
from models.user import User
from services.errors import InternalError, InvalidInputError, JournalError, NotFoundError

logger = logging.getLogger(__name__)

MAX_TAGS = 20
MAX_TAG_LENGTH = 50


@dataclass
class CreateEntryResult:
    entry_id: str
    guess_phrase: str
    suggested_tags: List[str] = field(default_factory=list)
    trigger_insight_nudge: bool = False

    def to_dict(self):
        return {
            'entryId': self.entry_id,
            'guessPhrase': self.guess_phrase,
            'suggestedTags': list(self.suggested_tags),
            'triggerInsightNudge': self.trigger_insight_nudge,
        }


class EarliestUserResolver:
    """
    Placeholder actor resolution: every entry belongs to the earliest-created
    user, and a development user is created when the table is empty. Real
    identity propagation has to replace this once authentication exists.
    """

    PLACEHOLDER_EMAIL = "dummyuser@example.com"
    PLACEHOLDER_PASSWORD_HASH = "temporary_password"

    def resolve(self, store) -> User:
        user = store.find_earliest_user()
        if user is not None:
            return user

        logger.warning("No users found. Creating a placeholder user for development.")
        try:
            return store.save_user(User(email=self.PLACEHOLDER_EMAIL,
                                        password_hash=self.PLACEHOLDER_PASSWORD_HASH))
        except IntegrityError:
            # A concurrent request created the placeholder first
            store.rollback()
            user = store.find_earliest_user()
            if user is None:
                raise
            return user


class EntryWorkflow:
    """Creates, retags, lists, fetches and soft-deletes journal entries."""

    # Pre-insert count at which the new entry becomes the third ever created
    NUDGE_AT_COUNT = 2

    def __init__(self, store, gateway, composer: ResponseComposer = None,
                 actor_resolver=None, interpreter=interpret):
        self.store = store
        self.gateway = gateway
        self.composer = composer or ResponseComposer()
        self.actor_resolver = actor_resolver or EarliestUserResolver()
        self.interpret = interpreter

    @staticmethod
    def _validate_content(content):
        if content is None or not isinstance(content, str) or not content.strip():
            raise InvalidInputError("Content cannot be null or empty")

    def create_entry(self, content) -> CreateEntryResult:
        logger.info("Received request to create new journal entry.")
        self._validate_content(content)

        try:
            actor, nudge = self._prepare()
            scores = self.gateway.score_text(content)
            entry, category = self._persist(content, actor, scores)
        except Exception as e:
            self._fail(e)

        return self._compose(entry, category, nudge)

    async def create_entry_async(self, content) -> CreateEntryResult:
        """Same as ``create_entry`` but awaits the sentiment call."""
        logger.info("Received async request to create new journal entry.")
        self._validate_content(content)

        # Score before touching the store: no await between count and insert
        scores = await self.gateway.score_text_async(content)
        try:
            actor, nudge = self._prepare()
            entry, category = self._persist(content, actor, scores)
        except Exception as e:
            self._fail(e)

        return self._compose(entry, category, nudge)

    def _prepare(self):
        actor = self.actor_resolver.resolve(self.store)
        count_before = self.store.count()
        logger.info(f"Total entries before save: {count_before}")
        return actor, count_before == self.NUDGE_AT_COUNT

    def _persist(self, content, actor, scores):
        logger.info(
            f"Sentiment scores: positive={scores.positive}, "
            f"negative={scores.negative}, neutral={scores.neutral}"
        )
        category = self.interpret(scores)
        logger.info(f"Interpreted sentiment: {category}")

        entry = JournalEntry(
            content=content,
            user_id=actor.id,
            sentiment_label=category.value,
            positive_score=scores.positive,
            negative_score=scores.negative,
            neutral_score=scores.neutral,
        )
        self.store.save(entry)
        self.store.commit()
        logger.info(f"Created journal entry {entry.id}")
        return entry, category

    def _compose(self, entry, category, nudge) -> CreateEntryResult:
        return CreateEntryResult(
            entry_id=entry.id,
            guess_phrase=self.composer.phrase_for(category),
            suggested_tags=self.composer.tags_for(category),
            trigger_insight_nudge=nudge,
        )

    def _fail(self, error):
        self.store.rollback()
        if isinstance(error, JournalError):
            raise error
        logger.exception(f"Failed to create journal entry: {error}")
        raise InternalError() from error

    def update_tags(self, entry_id, tag_names) -> JournalEntry:
        """Replace the whole tag set of an entry. Blank names are skipped."""
        logger.info(f"Updating tags for entry {entry_id}")
        if entry_id is None:
            raise InvalidInputError("Entry ID cannot be null")
        if not isinstance(tag_names, list):
            raise InvalidInputError("Tag names cannot be null")
        if not 1 <= len(tag_names) <= MAX_TAGS:
            raise InvalidInputError(f"Must have between 1 and {MAX_TAGS} tags")
        if any(not isinstance(name, str) or len(name) > MAX_TAG_LENGTH for name in tag_names):
            raise InvalidInputError(f"Tag name must be between 1 and {MAX_TAG_LENGTH} characters")

        entry = self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry not found with id: {entry_id}")

        try:
            tags = []
            for name in tag_names:
                if not name.strip():
                    continue
                tag = self.store.find_tag_by_name(name)
                if tag is None:
                    logger.info(f"Tag '{name}' not found. Creating new one.")
                    tag = self.store.save_tag(Tag(name=name))
                if tag not in tags:
                    tags.append(tag)

            entry.tags = tags
            self.store.commit()
        except Exception as e:
            self.store.rollback()
            logger.exception(f"Failed to update tags for entry {entry_id}: {e}")
            raise InternalError() from e

        return entry

    def list_entries(self, page: int, size: int):
        return self.store.find_all(page, size)

    def get_entry(self, entry_id) -> JournalEntry:
        entry = self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry not found with id: {entry_id}")
        return entry

    def delete_entry(self, entry_id) -> JournalEntry:
        entry = self.get_entry(entry_id)
        entry.deleted_at = datetime.utcnow()
        try:
            self.store.commit()
        except Exception as e:
            self.store.rollback()
            logger.exception(f"Failed to delete entry {entry_id}: {e}")
            raise InternalError() from e
        logger.info(f"Soft-deleted journal entry {entry_id}")
        return entry
