from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

import orjson
from pydantic import ValidationError

from spyprompt.config.settings import settings
from spyprompt.models.prompts import PromptTable


class PromptTableError(RuntimeError):
    """Raised when the prompt table cannot be loaded or validated."""


def load_prompt_table(path: Optional[Path] = None) -> PromptTable:
    """
    Load the (full, redacted) prompt pairs as a typed table.
    Raises PromptTableError if the file is missing, invalid or empty.
    """
    prompts_path = path or settings.prompts_path()
    try:
        raw = orjson.loads(prompts_path.read_bytes())
    except FileNotFoundError as exc:
        raise PromptTableError(f"prompts.json not found at {prompts_path}") from exc
    except orjson.JSONDecodeError as exc:
        raise PromptTableError(f"prompts.json is not valid JSON ({exc})") from exc

    if not isinstance(raw, list):
        raise PromptTableError("prompts.json must contain a JSON list at the root.")

    try:
        table = PromptTable.model_validate(raw)
    except ValidationError as exc:
        raise PromptTableError(f"prompts.json does not match the expected schema: {exc}") from exc

    if len(table) == 0:
        raise PromptTableError("prompts.json must contain at least one prompt.")
    return table


@lru_cache(maxsize=1)
def get_prompt_table() -> PromptTable:
    """Table configured by settings, read once per process."""
    return load_prompt_table()
