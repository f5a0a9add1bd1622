"""Pydantic models describing the Google Books volume payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class GoogleBooksBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ImageLinks(GoogleBooksBaseModel):
    small_thumbnail: str | None = Field(default=None, alias="smallThumbnail")
    thumbnail: str | None = None
    small: str | None = None
    medium: str | None = None
    large: str | None = None
    extra_large: str | None = Field(default=None, alias="extraLarge")


class IndustryIdentifier(GoogleBooksBaseModel):
    type: str
    identifier: str


class VolumeInfo(GoogleBooksBaseModel):
    title: str | None = None
    subtitle: str | None = None
    authors: list[str] = Field(default_factory=list)
    publisher: str | None = None
    published_date: str | None = Field(default=None, alias="publishedDate")
    image_links: ImageLinks | None = Field(default=None, alias="imageLinks")
    industry_identifiers: list[IndustryIdentifier] = Field(
        default_factory=list, alias="industryIdentifiers"
    )

    _normalize_title = field_validator("title", mode="before")(_blank_to_none)


class Volume(GoogleBooksBaseModel):
    id: str
    volume_info: VolumeInfo = Field(default_factory=VolumeInfo, alias="volumeInfo")


class VolumeSearch(GoogleBooksBaseModel):
    total_items: int = Field(default=0, alias="totalItems")
    items: list[Volume] = Field(default_factory=list)


class ErrorDetail(GoogleBooksBaseModel):
    code: int | None = None
    message: str = ""


class ErrorResponse(GoogleBooksBaseModel):
    error: ErrorDetail
