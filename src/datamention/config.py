"""Runtime configuration loaded from environment variables."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service endpoints and runtime knobs."""

    binary_classifier_url: str = "http://localhost:8060/classify/binary"
    datatype_classifier_url: str = "http://localhost:8060/classify/datatype"
    reuse_classifier_url: str = "http://localhost:8060/classify/reuse"
    relevance_model_url: Optional[str] = Field(
        default=None,
        description="Section relevance labeler. Unset: local heading heuristic.",
    )
    grobid_url: str = "http://localhost:8070"

    service_timeout: int = 60
    service_max_retries: int = 3

    spacy_model: str = "en_core_web_sm"
    lexicon_dir: Optional[str] = None
    term_idf_path: Optional[str] = None

    log_level: str = "INFO"
    version: str = "0.1.0"

    model_config = SettingsConfigDict(
        env_prefix="DATAMENTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def lexicon_dir_path(self) -> Optional[Path]:
        return Path(self.lexicon_dir) if self.lexicon_dir else None


settings = Settings()
