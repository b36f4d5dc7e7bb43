"""Exceptions raised by the quiz engine and its persistence layer."""


class VocabHunterError(Exception):
    """Base class for all package errors."""


class ValidationError(VocabHunterError, ValueError):
    """Raised when word fields are missing or malformed."""


class DuplicateTermError(ValidationError):
    """Raised when a term already exists in the same language."""

    def __init__(self, term: str, language: str):
        super().__init__(f"Term '{term}' already exists for language {language}")
        self.term = term
        self.language = language


class WordNotFoundError(VocabHunterError, LookupError):
    """Raised when a word id is unknown to the persistence layer."""

    def __init__(self, word_id: int):
        super().__init__(f"Word {word_id} not found")
        self.word_id = word_id


class PersistenceError(VocabHunterError):
    """Raised when the database rejects a write."""
