"""Configuration settings for the quiz engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
MEDIA_DIR = DATA_DIR / "media"
PRONUNCIATIONS_DIR = MEDIA_DIR / "pronunciations"

# Mastery settings
CORRECT_THRESHOLD = 5  # correct answers needed before a word can be archived
ACCURACY_THRESHOLD = 0.7  # accuracy a word must beat to be archived

# Supported practice formats and language partitions
QUIZ_MODES = ["multiple-choice", "fill-in-blank"]
LANGUAGES = ["EN", "JP"]


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


def _split_env(name: str, default: list[str]) -> list[str]:
    """Read a comma separated list from the environment."""
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    media_dir: Path = MEDIA_DIR
    pronunciations_dir: Path = PRONUNCIATIONS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabhunter.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class MasterySettings:
    """Archive (mastery) thresholds."""
    correct_threshold: int = int(os.getenv("CORRECT_THRESHOLD", str(CORRECT_THRESHOLD)))
    accuracy_threshold: float = float(os.getenv("ACCURACY_THRESHOLD", str(ACCURACY_THRESHOLD)))
    # False compares accuracy with ">", True with ">="
    accuracy_inclusive: bool = os.getenv("ACCURACY_INCLUSIVE", "false").lower() == "true"


@dataclass
class QuizSettings:
    """Quiz round settings."""
    min_pool_size: int = int(os.getenv("MC_MIN_POOL_SIZE", "3"))
    max_distractors: int = int(os.getenv("MC_MAX_DISTRACTORS", "3"))
    modes: list[str] = field(default_factory=lambda: _split_env("QUIZ_MODES", QUIZ_MODES))
    languages: list[str] = field(default_factory=lambda: _split_env("LANGUAGES", LANGUAGES))
    advance_delay: float = float(os.getenv("ADVANCE_DELAY", "1.0"))  # seconds
    archive_advance_delay: float = float(os.getenv("ARCHIVE_ADVANCE_DELAY", "2.0"))  # seconds


@dataclass
class AchievementSettings:
    """Milestone ladder settings."""
    step_base: int = int(os.getenv("MILESTONE_STEP_BASE", "1000"))
    step: int = int(os.getenv("MILESTONE_STEP", "200"))


@dataclass
class TranslationSettings:
    """Translation lookup settings."""
    target_language: str = os.getenv("TRANSLATION_TARGET", "zh-TW")
    cache_ttl: int = int(os.getenv("TRANSLATION_CACHE_TTL", "3600"))  # seconds
    cache_max_size: int = int(os.getenv("TRANSLATION_CACHE_SIZE", "512"))


@dataclass
class SpeechSettings:
    """Text-to-speech settings."""
    slow: bool = os.getenv("SPEECH_SLOW", "false").lower() == "true"


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_mastery_settings() -> MasterySettings:
    """Get mastery settings."""
    return MasterySettings()


def get_quiz_settings() -> QuizSettings:
    """Get quiz settings."""
    return QuizSettings()


def get_achievement_settings() -> AchievementSettings:
    """Get achievement settings."""
    return AchievementSettings()


def get_translation_settings() -> TranslationSettings:
    """Get translation settings."""
    return TranslationSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    mastery: MasterySettings = field(default_factory=get_mastery_settings)
    quiz: QuizSettings = field(default_factory=get_quiz_settings)
    achievement: AchievementSettings = field(default_factory=get_achievement_settings)
    translation: TranslationSettings = field(default_factory=get_translation_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.mastery.correct_threshold < 1:
            raise ValueError("CORRECT_THRESHOLD must be positive")

        if self.mastery.accuracy_threshold < 0 or self.mastery.accuracy_threshold > 1:
            raise ValueError("ACCURACY_THRESHOLD must be between 0 and 1")

        if self.quiz.min_pool_size < 2:
            raise ValueError("MC_MIN_POOL_SIZE must be at least 2")

        if self.quiz.max_distractors < 1:
            raise ValueError("MC_MAX_DISTRACTORS must be positive")

        if not self.quiz.modes:
            raise ValueError("QUIZ_MODES cannot be empty")

        if not self.quiz.languages:
            raise ValueError("LANGUAGES cannot be empty")

        if self.quiz.advance_delay < 0 or self.quiz.archive_advance_delay < 0:
            raise ValueError("Advance delays cannot be negative")

        if self.achievement.step < 1:
            raise ValueError("MILESTONE_STEP must be positive")

        if self.achievement.step_base < 1:
            raise ValueError("MILESTONE_STEP_BASE must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
