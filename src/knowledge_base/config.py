import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from knowledge_base.models import ChunkingOptions


class Settings(BaseSettings):
    _env_file: str = os.getenv("ENV_FILE", ".env")

    data_dir: str = "data"
    log_level: str = "INFO"

    max_chunk_size: int = 512
    chunk_overlap: int = 50
    preserve_sentences: bool = True
    bound_overlap: bool = False

    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_batch_size: int = 32

    kb_host: str = "localhost"
    kb_port: int = 6333
    kb_name: str = "knowledge_base"
    kb_batch_size: int = 100
    kb_limit: int = 5
    min_score: float = 0.5

    model_config = SettingsConfigDict(
        env_file=_env_file,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    def chunking_options(self) -> ChunkingOptions:
        """Build validated chunking options; raises ConfigurationError on bad sizes."""
        return ChunkingOptions(
            max_chunk_size=self.max_chunk_size,
            overlap_size=self.chunk_overlap,
            preserve_sentences=self.preserve_sentences,
            bound_overlap=self.bound_overlap,
        )
