"""Tests for persona prompt loading."""
from pathlib import Path

import pytest

from chatrelay.prompts import PACKAGE_DIR, clear_cache, load_persona, load_prompt, prompt_locations


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_cache()
    yield
    clear_cache()


class TestPromptLookup:
    """Tests for the prompt lookup order."""

    def test_packaged_persona(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_persona() == (PACKAGE_DIR / "persona.txt").read_text(encoding="utf-8")

    def test_working_directory_overrides_package(self, tmp_path, monkeypatch):
        (tmp_path / "prompts").mkdir()
        (tmp_path / "prompts" / "persona.txt").write_text("Local persona.", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_persona() == "Local persona."

    def test_explicit_file_wins(self, tmp_path, monkeypatch):
        (tmp_path / "prompts").mkdir()
        (tmp_path / "prompts" / "persona.txt").write_text("Local persona.", encoding="utf-8")
        explicit = tmp_path / "custom.txt"
        explicit.write_text("Custom persona.", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_persona(explicit) == "Custom persona."

    def test_missing_explicit_file_does_not_fall_back(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="missing.txt"):
            load_persona(tmp_path / "missing.txt")

    def test_unknown_prompt(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(FileNotFoundError, match="Prompt 'nope' not found"):
            load_prompt("nope")

    def test_locations_order(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert list(prompt_locations("persona")) == [
            Path.cwd() / "prompts" / "persona.txt",
            PACKAGE_DIR / "persona.txt",
        ]
