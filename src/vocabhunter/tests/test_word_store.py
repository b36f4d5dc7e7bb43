"""Tests for the in-memory word store."""
from datetime import datetime, timedelta, UTC

from sqlalchemy.orm import Session

from vocabhunter.models.quiz_models import Language, ModeStat, QuizMode, WordRecord
from vocabhunter.services.word_service import WordService
from vocabhunter.services.word_store import WordStore


def test_list_newest_first_per_language() -> None:
    now = datetime.now(UTC)
    old = WordRecord(id=1, term="cat", definition="chat", language=Language.EN, created_at=now - timedelta(days=1))
    new = WordRecord(id=2, term="dog", definition="chien", language=Language.EN, created_at=now)
    undated = WordRecord(id=3, term="cow", definition="vache", language=Language.EN)
    japanese = WordRecord(id=4, term="猫", definition="cat", language=Language.JP, created_at=now)

    store = WordStore([old, undated, new, japanese])

    assert [record.id for record in store.list(Language.EN)] == [2, 1, 3]
    assert [record.id for record in store.list(Language.JP)] == [4]


def test_upsert_and_remove(store: WordStore, pool) -> None:
    updated = pool[0].with_stat(QuizMode.MULTIPLE_CHOICE, ModeStat(1, 1))

    store.upsert(updated)
    assert store.get(pool[0].id) == updated

    assert store.remove(pool[0].id) == updated
    assert store.get(pool[0].id) is None
    assert store.remove(pool[0].id) is None
    assert len(store) == 4


def test_load_replaces_one_language(make_record) -> None:
    english = make_record()
    japanese = make_record(language=Language.JP)
    store = WordStore([english, japanese])

    replacement = make_record(language=Language.JP)
    store.load([replacement], Language.JP)

    assert store.list(Language.EN) == [english]
    assert store.list(Language.JP) == [replacement]


def test_progress(make_record) -> None:
    archived = ModeStat(5, 5, archived=True)
    store = WordStore([
        make_record(multiple_choice=archived),
        make_record(),
        make_record(),
        make_record(language=Language.JP, multiple_choice=archived),
    ])

    progress = store.progress(Language.EN, QuizMode.MULTIPLE_CHOICE)

    assert (progress.total, progress.mastered) == (3, 1)
    assert round(progress.percent) == 33
    assert store.progress(Language.JP).percent == 100
    assert WordStore().progress(Language.EN).percent == 0


def test_attach_follows_change_stream(db: Session) -> None:
    service = WordService(db)
    existing = service.create({"term": "cat", "definition": "chat", "language": "EN"})
    store = WordStore()

    store.attach(service)
    assert [record.id for record in store.list(Language.EN)] == [existing]

    created = service.create({"term": "dog", "definition": "chien", "language": "EN"})
    assert store.get(created).term == "dog"

    service.update(created, {"definition": "perro"})
    assert store.get(created).definition == "perro"

    service.delete(existing)
    assert store.get(existing) is None

    store.detach()
    service.create({"term": "cow", "definition": "vache", "language": "EN"})
    assert len(store) == 1
