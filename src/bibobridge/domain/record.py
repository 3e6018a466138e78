# src/bibobridge/domain/record.py
from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BibTeXRecord(BaseModel):
    """
    A tokenized BibTeX entry.

    Produced by an external tokenizer: entry type, optional citation key and
    the raw field map. Entry type and field names are case-insensitive and
    stored lowercased.
    """

    model_config = ConfigDict(frozen=True)

    entry_type: str = Field(..., min_length=1, description="Entry type, e.g. article")
    key: Optional[str] = Field(None, description="Citation key")
    fields: Dict[str, str] = Field(default_factory=dict, description="Field name to raw text")

    @field_validator("entry_type")
    @classmethod
    def _lower_type(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("key")
    @classmethod
    def _strip_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("fields")
    @classmethod
    def _lower_fields(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {str(k).strip().lower(): "" if v is None else str(v) for k, v in value.items()}

    def get(self, name: str) -> Optional[str]:
        """Stripped field value, or None when absent or blank."""
        value = self.fields.get(name.lower())
        if value is None:
            return None
        value = value.strip()
        return value or None

    def has(self, name: str) -> bool:
        return self.get(name) is not None
