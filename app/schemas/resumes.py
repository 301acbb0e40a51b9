from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


def _non_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class ResumeDocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    # Serialized editor document; an empty skeleton is stored when omitted.
    content: str | None = Field(default=None, max_length=200000)
    template_id: str | None = Field(default=None, max_length=100)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return _non_blank(value)


class ResumeDocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = Field(default=None, max_length=200000)
    template_id: str | None = Field(default=None, max_length=100)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str | None) -> str | None:
        return None if value is None else _non_blank(value)


class ResumeDocument(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    template_id: str | None = None
    last_modified: int
