import asyncio
import time
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from ai_services.response_composer import GUESS_PHRASES, SUGGESTED_TAGS, ResponseComposer
from ai_services.sentiment_analyzer import SentimentGateway, SentimentScores
from ai_services.sentiment_interpreter import SentimentCategory
from extensions import db
from models import JournalEntry, Tag, User
from services.errors import InternalError, InvalidInputError, NotFoundError
from services.journal_service import EarliestUserResolver, EntryWorkflow
from services.journal_store import JournalStore
from tests.fakes import BrokenSentimentClient, FakeSentimentClient

CONTENT = "Today I finally finished the project I was working on."


class StubStore:
    """In-memory store for exercising the workflow without a database."""

    def __init__(self, count=0, user=None):
        self._count = count
        self.user = user if user is not None else SimpleNamespace(id="user-1")
        self.saved = []
        self.commits = 0
        self.rollbacks = 0

    def find_earliest_user(self):
        return self.user

    def save_user(self, user):
        self.user = user
        return user

    def count(self):
        return self._count

    def save(self, entry):
        entry.id = f"entry-{len(self.saved) + 1}"
        self.saved.append(entry)
        return entry

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


def make_workflow(store, client=None, **kwargs):
    gateway = SentimentGateway(client=client, retry_delay=0)
    return EntryWorkflow(store, gateway, **kwargs)


# ---------------------------------------------------------------------------
#  Creation (stub store)
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("count_before, expected", [
    (0, False),
    (1, False),
    (2, True),
    (3, False),
    (5, False),
    (6, False),
    (100, False),
])
def test_nudge_fires_only_before_the_third_entry(count_before, expected):
    result = make_workflow(StubStore(count=count_before)).create_entry(CONTENT)
    assert result.trigger_insight_nudge is expected


@pytest.mark.parametrize("content", [None, "", "   ", "\n\t  ", 42])
def test_invalid_content_has_no_side_effects(content):
    store = StubStore()
    fake = FakeSentimentClient()
    with pytest.raises(InvalidInputError):
        make_workflow(store, client=fake).create_entry(content)
    assert store.saved == []
    assert store.commits == 0
    assert fake.calls == 0


def test_response_matches_interpreted_category():
    store = StubStore()
    fake = FakeSentimentClient(SentimentScores(0.1, 0.8, 0.1))

    result = make_workflow(store, client=fake).create_entry(CONTENT)

    entry = store.saved[0]
    assert entry.sentiment_label == 'negative'
    assert (entry.positive_score, entry.negative_score, entry.neutral_score) == (0.1, 0.8, 0.1)
    assert entry.user_id == "user-1"
    assert result.entry_id == entry.id
    assert result.guess_phrase in GUESS_PHRASES[SentimentCategory.NEGATIVE]
    assert result.suggested_tags == list(SUGGESTED_TAGS[SentimentCategory.NEGATIVE])
    assert store.commits == 1


def test_provider_failure_never_aborts_creation():
    store = StubStore()
    result = make_workflow(store, client=BrokenSentimentClient()).create_entry(CONTENT)

    entry = store.saved[0]
    assert entry.sentiment_label == 'mixed'
    assert (entry.positive_score, entry.negative_score, entry.neutral_score) == (0.33, 0.33, 0.34)
    assert result.guess_phrase in GUESS_PHRASES[SentimentCategory.MIXED]
    assert result.suggested_tags == list(SUGGESTED_TAGS[SentimentCategory.MIXED])


def test_injected_random_source_picks_exact_phrase():
    class LastChoice:
        def choice(self, seq):
            return seq[-1]

    composer = ResponseComposer(rng=LastChoice())
    result = make_workflow(StubStore(), client=FakeSentimentClient(), composer=composer).create_entry(CONTENT)
    assert result.guess_phrase == GUESS_PHRASES[SentimentCategory.POSITIVE][-1]


def test_persistence_failure_is_internal_and_rolled_back():
    store = StubStore()

    def boom(entry):
        raise RuntimeError("disk full")

    store.save = boom
    with pytest.raises(InternalError) as excinfo:
        make_workflow(store).create_entry(CONTENT)

    assert "disk full" not in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert store.rollbacks == 1
    assert store.commits == 0


def test_response_to_dict_uses_wire_names():
    result = make_workflow(StubStore(count=2)).create_entry(CONTENT)
    body = result.to_dict()
    assert set(body) == {'entryId', 'guessPhrase', 'suggestedTags', 'triggerInsightNudge'}
    assert body['triggerInsightNudge'] is True


# ---------------------------------------------------------------------------
#  Actor resolution
# ---------------------------------------------------------------------------

def test_resolver_creates_placeholder_when_no_users():
    store = StubStore()
    store.user = None
    user = EarliestUserResolver().resolve(store)
    assert user.email == EarliestUserResolver.PLACEHOLDER_EMAIL
    assert user.password_hash == EarliestUserResolver.PLACEHOLDER_PASSWORD_HASH


def test_resolver_recovers_when_placeholder_was_created_concurrently():
    existing = SimpleNamespace(id="winner")

    class RacingStore(StubStore):
        def __init__(self):
            super().__init__()
            self.lookups = 0

        def find_earliest_user(self):
            self.lookups += 1
            return None if self.lookups == 1 else existing

        def save_user(self, user):
            raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed"))

    store = RacingStore()
    assert EarliestUserResolver().resolve(store) is existing
    assert store.rollbacks == 1


def test_custom_actor_resolver_is_used():
    actor = SimpleNamespace(id="someone-else")
    resolver = SimpleNamespace(resolve=lambda store: actor)
    store = StubStore()
    make_workflow(store, actor_resolver=resolver).create_entry(CONTENT)
    assert store.saved[0].user_id == "someone-else"


# ---------------------------------------------------------------------------
#  Against the database
# ---------------------------------------------------------------------------

@pytest.fixture
def workflow(app):
    return EntryWorkflow(JournalStore(), SentimentGateway(client=FakeSentimentClient(), retry_delay=0))


def test_creation_persists_entry_and_placeholder_user(workflow):
    result = workflow.create_entry(CONTENT)

    entry = db.session.get(JournalEntry, result.entry_id)
    assert entry.content == CONTENT
    assert entry.sentiment_label == 'positive'
    assert entry.created_at is not None
    assert entry.deleted_at is None
    users = User.query.all()
    assert len(users) == 1
    assert entry.user_id == users[0].id


def test_every_entry_uses_the_earliest_user(workflow):
    first = workflow.create_entry(CONTENT)
    second = workflow.create_entry(CONTENT + " Again.")
    assert User.query.count() == 1
    assert db.session.get(JournalEntry, first.entry_id).user_id == db.session.get(JournalEntry, second.entry_id).user_id


def test_nudge_fires_once_in_the_lifetime(workflow):
    nudges = [workflow.create_entry(f"{CONTENT} #{i}").trigger_insight_nudge for i in range(5)]
    assert nudges == [False, False, True, False, False]


def test_soft_deleted_entries_still_count_for_the_nudge(workflow):
    first = workflow.create_entry(CONTENT)
    workflow.delete_entry(first.entry_id)
    workflow.create_entry(CONTENT)
    assert workflow.create_entry(CONTENT).trigger_insight_nudge is True


def test_failed_persistence_leaves_nothing_committed(app, workflow, monkeypatch):
    def boom(entry):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(workflow.store, "save", boom)
    with pytest.raises(InternalError):
        workflow.create_entry(CONTENT)

    assert JournalEntry.query.count() == 0
    assert User.query.count() == 0


def test_async_creation(workflow):
    result = asyncio.run(workflow.create_entry_async(CONTENT))
    assert db.session.get(JournalEntry, result.entry_id) is not None
    assert result.suggested_tags == list(SUGGESTED_TAGS[SentimentCategory.POSITIVE])


def test_async_creation_rejects_blank_content(workflow):
    with pytest.raises(InvalidInputError):
        asyncio.run(workflow.create_entry_async("   "))
    assert JournalEntry.query.count() == 0


def test_concurrent_async_creations_fire_the_nudge_once(workflow):
    class SlowClient:
        def score(self, text):
            time.sleep(0.2)
            return SentimentScores(positive=0.8, negative=0.1, neutral=0.1)

    workflow.create_entry(CONTENT)
    workflow.create_entry(CONTENT + " Again.")
    workflow.gateway = SentimentGateway(client=SlowClient(), retry_delay=0)

    async def main():
        return await asyncio.gather(
            workflow.create_entry_async(CONTENT + " Third."),
            workflow.create_entry_async(CONTENT + " Fourth."),
        )

    results = asyncio.run(main())
    assert sorted(r.trigger_insight_nudge for r in results) == [False, True]
    assert JournalEntry.query.count() == 4
    workflow.gateway.close()


# ---------------------------------------------------------------------------
#  Retagging, lookup, listing, deletion
# ---------------------------------------------------------------------------

def tag_names(entry):
    return {tag.name for tag in entry.tags}


def test_retagging_replaces_the_whole_set(workflow):
    entry_id = workflow.create_entry(CONTENT).entry_id
    workflow.update_tags(entry_id, ["a", "b"])
    entry = workflow.update_tags(entry_id, ["c"])
    assert tag_names(entry) == {"c"}
    assert tag_names(workflow.get_entry(entry_id)) == {"c"}


def test_retagging_reuses_existing_tags(workflow):
    first = workflow.create_entry(CONTENT).entry_id
    second = workflow.create_entry(CONTENT).entry_id
    workflow.update_tags(first, ["calm"])
    workflow.update_tags(second, ["calm", "tired"])
    assert Tag.query.filter_by(name="calm").count() == 1
    assert Tag.query.count() == 2


def test_retagging_skips_blank_names_and_collapses_duplicates(workflow):
    entry_id = workflow.create_entry(CONTENT).entry_id
    entry = workflow.update_tags(entry_id, ["  ", "", "calm", "calm"])
    assert [tag.name for tag in entry.tags] == ["calm"]


def test_tag_names_are_case_sensitive(workflow):
    entry_id = workflow.create_entry(CONTENT).entry_id
    entry = workflow.update_tags(entry_id, ["Calm", "calm"])
    assert tag_names(entry) == {"Calm", "calm"}


def test_retagging_unknown_entry_is_not_found(workflow):
    with pytest.raises(NotFoundError):
        workflow.update_tags("6f1c1b9e-8f87-4d6b-9a8c-2f7b1f0f4b11", ["c"])


@pytest.mark.parametrize("names", [None, [], ["x"] * 21, ["x" * 51], [None], "calm"])
def test_retagging_rejects_bad_tag_lists(workflow, names):
    entry_id = workflow.create_entry(CONTENT).entry_id
    with pytest.raises(InvalidInputError):
        workflow.update_tags(entry_id, names)


def test_get_unknown_entry_is_not_found(workflow):
    with pytest.raises(NotFoundError):
        workflow.get_entry("not-a-real-id")


def test_delete_hides_entry(workflow):
    entry_id = workflow.create_entry(CONTENT).entry_id
    workflow.delete_entry(entry_id)

    assert db.session.get(JournalEntry, entry_id).deleted_at is not None
    with pytest.raises(NotFoundError):
        workflow.get_entry(entry_id)
    with pytest.raises(NotFoundError):
        workflow.update_tags(entry_id, ["c"])
    with pytest.raises(NotFoundError):
        workflow.delete_entry(entry_id)


def test_list_entries_pages_through_live_entries(workflow):
    ids = [workflow.create_entry(f"{CONTENT} #{i}").entry_id for i in range(5)]
    workflow.delete_entry(ids[0])

    page = workflow.list_entries(1, 3)
    assert page.total == 4
    assert page.pages == 2
    assert len(page.items) == 3
    assert len(workflow.list_entries(2, 3).items) == 1
    assert workflow.list_entries(3, 3).items == []
