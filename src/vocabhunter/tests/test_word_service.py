"""Tests for word service."""
from unittest.mock import Mock

import pytest
from faker import Faker
from sqlalchemy.orm import Session

from vocabhunter.errors import DuplicateTermError, ValidationError, WordNotFoundError
from vocabhunter.models.models import VocabWord, WordModeStat
from vocabhunter.models.quiz_models import Language, ModeStat, QuizMode
from vocabhunter.services.word_service import ChangeKind, PoolChange, WordService

fake = Faker()


@pytest.fixture
def word_service(db: Session) -> WordService:
    """Create a word service instance."""
    return WordService(db)


def test_create_word(word_service: WordService, db: Session) -> None:
    """Test creating a word with zeroed stats."""
    word_id = word_service.create({"term": "  dog ", "definition": " chien、狗 ", "language": "EN"})

    word = word_service.get(word_id)
    assert word.term == "dog"
    assert word.definition == "chien、狗"
    assert word.language == Language.EN
    assert word.created_at is not None
    assert word.stats == {
        QuizMode.MULTIPLE_CHOICE: ModeStat(),
        QuizMode.FILL_IN_BLANK: ModeStat(),
    }
    assert db.query(WordModeStat).count() == 2


def test_create_requires_term_and_definition(word_service: WordService) -> None:
    with pytest.raises(ValidationError):
        word_service.create({"term": "", "definition": "chien", "language": "EN"})
    with pytest.raises(ValidationError):
        word_service.create({"term": "dog", "definition": "   ", "language": "EN"})
    with pytest.raises(ValidationError):
        word_service.create({"term": "dog", "definition": "chien", "language": "FR"})


def test_duplicate_terms_per_language(word_service: WordService) -> None:
    """Terms are unique ignoring case, within one language."""
    word_service.create({"term": "Dog", "definition": "chien", "language": "EN"})

    with pytest.raises(DuplicateTermError):
        word_service.create({"term": "dOG", "definition": "perro", "language": "EN"})

    assert word_service.create({"term": "dog", "definition": "犬", "language": "JP"})


def test_list_is_language_scoped_newest_first(word_service: WordService) -> None:
    first = word_service.create({"term": "cat", "definition": "chat", "language": "EN"})
    second = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})
    word_service.create({"term": "猫", "definition": "cat", "language": "JP"})

    words = word_service.list(Language.EN)

    assert [word.id for word in words] == [second, first]
    assert word_service.count("EN") == 2
    assert word_service.count(Language.JP) == 1


def test_get_by_term(word_service: WordService) -> None:
    word_id = word_service.create({"term": "Hello", "definition": "bonjour", "language": "EN"})

    assert word_service.get_by_term("hello", Language.EN).id == word_id
    assert word_service.get_by_term("hello", Language.JP) is None


def test_update_fields(word_service: WordService) -> None:
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})

    word = word_service.update(word_id, {"term": "Dog", "definition": "chien、狗"})

    assert word.term == "Dog"
    assert word.definition == "chien、狗"


def test_update_rejects_duplicate_term(word_service: WordService) -> None:
    word_service.create({"term": "cat", "definition": "chat", "language": "EN"})
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})

    with pytest.raises(DuplicateTermError):
        word_service.update(word_id, {"term": "CAT"})


def test_update_stats(word_service: WordService) -> None:
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})

    word = word_service.update(
        word_id,
        {"stats": {QuizMode.MULTIPLE_CHOICE: ModeStat(5, 6, archived=True)}},
    )

    assert word.stat_for(QuizMode.MULTIPLE_CHOICE) == ModeStat(5, 6, archived=True)
    assert word.stat_for(QuizMode.FILL_IN_BLANK) == ModeStat()


def test_update_stats_from_plain_mapping(word_service: WordService) -> None:
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})

    word = word_service.update(
        word_id,
        {"stats": {"fill-in-blank": {"correct_count": 1, "total_count": 2, "archived": False}}},
    )

    assert word.stat_for(QuizMode.FILL_IN_BLANK) == ModeStat(1, 2)


def test_archived_flag_is_never_reset(word_service: WordService) -> None:
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})
    word_service.update(word_id, {"stats": {QuizMode.MULTIPLE_CHOICE: ModeStat(5, 5, archived=True)}})

    word = word_service.update(word_id, {"stats": {QuizMode.MULTIPLE_CHOICE: ModeStat(5, 6, archived=False)}})

    assert word.stat_for(QuizMode.MULTIPLE_CHOICE).archived is True


def test_update_unknown_word(word_service: WordService) -> None:
    with pytest.raises(WordNotFoundError):
        word_service.update(999, {"definition": "x"})


def test_delete_word(word_service: WordService, db: Session) -> None:
    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})

    assert word_service.delete(word_id) is True
    assert word_service.get(word_id) is None
    assert db.query(WordModeStat).count() == 0
    assert word_service.delete(word_id) is False


def test_change_notifications(word_service: WordService) -> None:
    listener = Mock()
    word_service.subscribe(listener)

    word_id = word_service.create({"term": "dog", "definition": "chien", "language": "EN"})
    word_service.update(word_id, {"definition": "perro"})
    word_service.delete(word_id)

    assert [call.args[0] for call in listener.call_args_list] == [
        PoolChange(ChangeKind.CREATED, Language.EN, word_id),
        PoolChange(ChangeKind.UPDATED, Language.EN, word_id),
        PoolChange(ChangeKind.DELETED, Language.EN, word_id),
    ]

    word_service.unsubscribe(listener)
    word_service.create({"term": "cat", "definition": "chat", "language": "EN"})
    assert listener.call_count == 3


def test_failing_listener_does_not_break_writes(word_service: WordService) -> None:
    word_service.subscribe(Mock(side_effect=RuntimeError("boom")))

    word_id = word_service.create({"term": fake.word(), "definition": fake.word(), "language": "EN"})

    assert word_service.get(word_id) is not None


def test_model_to_record_skips_unknown_modes(db: Session) -> None:
    word = VocabWord(term="dog", term_key="dog", definition="chien", language="EN")
    word.stats = [
        WordModeStat(mode="multiple-choice", correct_count=1, total_count=2, archived=False),
        WordModeStat(mode="spelling", correct_count=1, total_count=1, archived=False),
    ]
    db.add(word)
    db.commit()

    record = word.to_record()

    assert list(record.stats) == [QuizMode.MULTIPLE_CHOICE]
