"""Persona prompt loading.

The relay's system prompt lives in a text file rather than in code. A
prompt is looked up in this order:

1. An explicit file (``RELAY_PERSONA_FILE``); if given it must exist
2. ``./prompts/<name>.txt`` in the working directory, to override the
   packaged copy without reinstalling
3. ``<name>.txt`` shipped inside this package

Results are cached per (name, file) pair; call clear_cache() after
editing a prompt file in a running process.
"""

from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

PERSONA = "persona"


def prompt_locations(name: str, explicit: str | None = None) -> Iterator[Path]:
    """Yield the candidate files for a prompt, highest priority first."""
    if explicit is not None:
        yield Path(explicit).expanduser()
        return
    yield Path.cwd() / "prompts" / f"{name}.txt"
    yield PACKAGE_DIR / f"{name}.txt"


@lru_cache(maxsize=16)
def load_prompt(name: str, explicit: str | None = None) -> str:
    """Read the first existing prompt file for ``name``.

    Raises:
        FileNotFoundError: If no candidate exists
    """
    searched = []
    for path in prompt_locations(name, explicit):
        if path.is_file():
            return path.read_text(encoding="utf-8")
        searched.append(str(path))
    raise FileNotFoundError(f"Prompt '{name}' not found. Searched: {', '.join(searched)}")


def load_persona(path: str | Path | None = None) -> str:
    """The relay persona, from ``path`` when given."""
    return load_prompt(PERSONA, str(path) if path is not None else None)


def clear_cache() -> None:
    load_prompt.cache_clear()


__all__ = [
    "PERSONA",
    "clear_cache",
    "load_persona",
    "load_prompt",
    "prompt_locations",
]
