import pytest

from knowledge_base.config import Settings
from knowledge_base.exceptions import ConfigurationError


class TestSettings:
    """Test settings loading."""

    def test_defaults(self):
        settings = Settings()
        assert settings.max_chunk_size == 512
        assert settings.chunk_overlap == 50
        assert settings.kb_port == 6333

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_CHUNK_SIZE", "256")
        monkeypatch.setenv("chunk_overlap", "0")
        monkeypatch.setenv("KB_NAME", "notes")

        settings = Settings()

        assert settings.max_chunk_size == 256
        assert settings.chunk_overlap == 0
        assert settings.kb_name == "notes"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "test.env"
        env_file.write_text("MAX_CHUNK_SIZE=128\nPRESERVE_SENTENCES=false\n")

        settings = Settings(_env_file=str(env_file))

        assert settings.max_chunk_size == 128
        assert settings.preserve_sentences is False

    def test_chunking_options(self):
        options = Settings(max_chunk_size=100, chunk_overlap=5, bound_overlap=True).chunking_options()

        assert options.max_chunk_size == 100
        assert options.overlap_size == 5
        assert options.bound_overlap is True

    def test_invalid_chunking_options(self):
        with pytest.raises(ConfigurationError):
            Settings(max_chunk_size=0).chunking_options()
