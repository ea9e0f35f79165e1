from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.storage.schemas import STATUS_COMPLETED, STATUS_FAILED, STATUS_IN_PROGRESS


def record(citation="Cal. Penal Code § 187", content="Murder is the unlawful killing...", **kwargs):
    data = dict(
        citation=citation,
        title="Murder",
        content=content,
        url="https://leginfo.legislature.ca.gov/187",
        jurisdiction="CA",
        category="Homicide",
    )
    data.update(kwargs)
    return StatuteRecord(**data)


# ---------------------------------------------------------------- StatuteStore

def test_upsert_inserts_new_statute(store):
    assert store.upsert(record())

    saved = store.get("Cal. Penal Code § 187")
    assert saved['title'] == "Murder"
    assert saved['jurisdiction'] == "CA"
    assert saved['created_at'] == saved['updated_at']


def test_upsert_same_citation_updates_in_place(store):
    store.upsert(record())
    first = store.get("Cal. Penal Code § 187")

    assert store.upsert(record(content="Murder is the unlawful killing of a human being, amended."))

    saved = store.get("Cal. Penal Code § 187")
    assert store.count() == 1
    assert saved['id'] == first['id']
    assert saved['content'].endswith("amended.")
    assert saved['created_at'] == first['created_at']
    assert saved['updated_at'] >= first['updated_at']


def test_upsert_reports_rejected_write(store):
    assert not store.upsert(record(title=None))
    assert store.count() == 0

    # the store is still usable after the rollback
    assert store.upsert(record())


def test_get_unknown_citation(store):
    assert store.get("Nope § 1") is None


def test_count_and_list_by_jurisdiction(store):
    store.upsert(record())
    store.upsert(record(citation="Tex. Penal Code § 19.02", jurisdiction="TX"))
    store.upsert(record(citation="Cal. Penal Code § 211"))

    assert store.count() == 3
    assert store.count("ca") == 2
    assert [s['citation'] for s in store.list("TX")] == ["Tex. Penal Code § 19.02"]
    assert len(store.list(limit=1)) == 1


# ---------------------------------------------------------------- SessionTracker

def test_start_creates_in_progress_session(tracker):
    session_id = tracker.start("CA", "full_scrape")

    session = tracker.get(session_id)
    assert session['status'] == STATUS_IN_PROGRESS
    assert session['statutes_scraped'] == 0
    assert session['error_count'] == 0
    assert session['completed_at'] is None


def test_progress_updates_counters(tracker):
    session_id = tracker.start("CA")

    tracker.progress(session_id, 2, 1)

    session = tracker.get(session_id)
    assert (session['statutes_scraped'], session['error_count']) == (2, 1)
    assert session['last_updated_at'] is not None


def test_progress_never_decreases(tracker):
    session_id = tracker.start("CA")
    tracker.progress(session_id, 3, 1)

    tracker.progress(session_id, 2, 1)

    assert tracker.get(session_id)['statutes_scraped'] == 3


def test_complete_success(tracker):
    session_id = tracker.start("CA")
    tracker.progress(session_id, 2, 1)

    tracker.complete(session_id, True, metadata={'attempted': 3, 'succeeded': 2, 'failed': 1})

    session = tracker.get(session_id)
    assert session['status'] == STATUS_COMPLETED
    assert session['completed_at'] is not None
    assert session['error_message'] is None
    assert session['metadata'] == {'attempted': 3, 'succeeded': 2, 'failed': 1}


def test_complete_failure_without_message(tracker):
    session_id = tracker.start("CA")

    tracker.complete(session_id, False)

    session = tracker.get(session_id)
    assert session['status'] == STATUS_FAILED
    assert session['error_message'] == "Unknown error"


def test_terminal_session_is_frozen(tracker):
    session_id = tracker.start("CA")
    tracker.progress(session_id, 1, 0)
    tracker.complete(session_id, False, error_message="boom")

    tracker.complete(session_id, True)
    tracker.progress(session_id, 5, 5)

    session = tracker.get(session_id)
    assert session['status'] == STATUS_FAILED
    assert session['error_message'] == "boom"
    assert (session['statutes_scraped'], session['error_count']) == (1, 0)


def test_history_most_recent_first(tracker):
    first = tracker.start("CA")
    second = tracker.start("TX")
    third = tracker.start("CA")

    assert [s['id'] for s in tracker.history()] == [third, second, first]
    assert [s['id'] for s in tracker.history("CA")] == [third, first]
    assert [s['id'] for s in tracker.history(limit=1)] == [third]
    assert tracker.latest("TX")['id'] == second
    assert tracker.latest("NY") is None
    assert len(tracker.all()) == 3
