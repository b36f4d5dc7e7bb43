"""Test configuration."""
import os
import random
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from dotenv import load_dotenv
from faker import Faker
from sqlalchemy.orm import Session

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Import after environment setup
from vocabhunter.config import ensure_directories
from vocabhunter.models.base import Base, engine, get_db, init_db
from vocabhunter.models.quiz_models import Language, ModeStat, QuizMode, WordRecord
from vocabhunter.services.word_store import WordStore

fake = Faker()


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()
    yield


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    init_db()
    sessions = get_db()
    try:
        yield next(sessions)
    finally:
        sessions.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator for reproducible rounds."""
    return random.Random(1234)


@pytest.fixture
def make_record() -> Callable[..., WordRecord]:
    """Factory for word records with unique ids."""
    counter = {"id": 0}

    def factory(
        term: Optional[str] = None,
        definition: Optional[str] = None,
        language: Language = Language.EN,
        **stats: ModeStat,
    ) -> WordRecord:
        counter["id"] += 1
        return WordRecord(
            id=counter["id"],
            term=term if term is not None else f"{fake.word()}{counter['id']}",
            definition=definition if definition is not None else f"def-{counter['id']}",
            language=language,
            stats={QuizMode(mode.replace("_", "-")): stat for mode, stat in stats.items()},
        )

    return factory


@pytest.fixture
def pool(make_record) -> list[WordRecord]:
    """Five fresh English words."""
    return [make_record() for _ in range(5)]


@pytest.fixture
def store(pool) -> WordStore:
    """Word store loaded with the default pool."""
    return WordStore(pool)
