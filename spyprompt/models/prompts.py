from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, RootModel


class PromptEntry(BaseModel):
    full_text: str = Field(min_length=1)
    redacted_text: str = Field(min_length=1)


class PromptTable(RootModel[List[PromptEntry]]):
    """Ordered (full, redacted) pairs; the index is the pairing key."""

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> PromptEntry:
        return self.root[index]

    def full_text(self, index: int) -> str:
        return self[index].full_text

    def redacted_text(self, index: int) -> str:
        return self[index].redacted_text

    def full_texts(self) -> List[str]:
        return [entry.full_text for entry in self.root]
