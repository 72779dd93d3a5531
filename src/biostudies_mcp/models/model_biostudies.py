"""
Pydantic models for BioStudies API data.

These are the data contracts between the BioStudies client and the tool
pipeline. The pipeline and renderer receive these models - they never see
raw API responses.

Upstream keys are camelCase (``releaseDate``, ``totalHits``); fields are
snake_case and populated through an alias generator. Explicit JSON nulls
fall back to the field default.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel


class BioStudiesModel(BaseModel):
    """Shared config: camelCase aliases, unknown keys ignored, nulls coerced."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    @model_validator(mode="before")
    @classmethod
    def coerce_nones(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for field_name, field_info in cls.model_fields.items():
            if field_info.is_required() or field_info.default is None:
                continue
            for key in {field_info.alias or field_name, field_name}:
                if key in values and values[key] is None:
                    values[key] = field_info.default
        return values


def _flatten_one_level(raw: Any) -> list[Any]:
    """Inline nested arrays one level deep (BioStudies section tables)."""
    if not raw:
        return []
    flat: list[Any] = []
    for item in raw:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


# ---------------------------------------------------------------------------
# Attributes and links
# ---------------------------------------------------------------------------


class Qualifier(BioStudiesModel):
    """Name or value qualifier attached to an attribute."""

    name: str = ""
    value: str = ""


class Attribute(BioStudiesModel):
    """A name/value pair, optionally qualified."""

    name: str = ""
    value: str = ""
    reference: bool = False
    nmqual: list[Qualifier] = []
    valqual: list[Qualifier] = []

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float, bool)):
            return str(value)
        return value


class Link(BioStudiesModel):
    """A single external reference."""

    url: str = ""
    attributes: list[Attribute] = []


class LinkGroup(BioStudiesModel):
    """A nested array of links (link-of-links), one level deep."""

    links: list[Link] = []


LinkEntry = Link | LinkGroup


def normalize_links(raw: Any) -> list[LinkEntry]:
    """Resolve the flat-or-nested link shape into explicit Link / LinkGroup items.

    Upstream sends either link objects or arrays of link objects. Anything
    else (strings, numbers, deeper nesting) is dropped.
    """
    if not raw:
        return []
    entries: list[LinkEntry] = []
    for item in raw:
        if isinstance(item, (Link, LinkGroup)):
            entries.append(item)
        elif isinstance(item, dict):
            entries.append(Link.model_validate(item))
        elif isinstance(item, list):
            entries.append(
                LinkGroup(
                    links=[Link.model_validate(sub) for sub in item if isinstance(sub, dict)]
                )
            )
    return entries


# ---------------------------------------------------------------------------
# Files and sections
# ---------------------------------------------------------------------------


class FileInfo(BioStudiesModel):
    """A file attached to a study or one of its sections."""

    name: str = ""
    path: str = ""
    size: int | None = None  # bytes
    type: str | None = None
    md5: str | None = None
    attributes: list[Attribute] = []

    @property
    def display_name(self) -> str:
        return self.name or self.path or "Unknown filename"


class Section(BioStudiesModel):
    """Recursive container of attributes, links, files and subsections."""

    type: str | None = None
    accno: str | None = None
    attributes: list[Attribute] = []
    links: list[LinkEntry] = []
    files: list[FileInfo] = []
    subsections: list["Section"] = []

    @field_validator("links", mode="before")
    @classmethod
    def resolve_link_shapes(cls, value: Any) -> list[LinkEntry]:
        return normalize_links(value)

    @field_validator("files", "subsections", mode="before")
    @classmethod
    def flatten_tables(cls, value: Any) -> list[Any]:
        return _flatten_one_level(value)


Section.model_rebuild()


# ---------------------------------------------------------------------------
# Studies
# ---------------------------------------------------------------------------


class Author(BioStudiesModel):
    name: str = ""
    email: str | None = None
    affiliation: str | None = None
    orcid: str | None = None


class Study(BioStudiesModel):
    """Full study record from GET /studies/{accno}."""

    accno: str = ""
    title: str = ""
    description: str | None = None
    authors: list[Author] = []
    release_date: str | None = None
    modify_date: str | None = None
    collection: str | None = None
    type: str | None = None
    attributes: list[Attribute] = []  # legacy flat attributes
    section: Section | None = None
    views: int | None = None
    downloads: int | None = None
    is_public: bool | None = None

    def attribute(self, name: str) -> str | None:
        """Value of the first top-level attribute called name, if any."""
        for attr in self.attributes:
            if attr.name == name:
                return attr.value
        return None

    @property
    def display_title(self) -> str:
        return self.title or self.attribute("Title") or "Title not available"


class StudySearchHit(BioStudiesModel):
    """A single study in a search or collection listing."""

    accno: str = ""
    title: str = ""
    authors: list[str] = []
    release_date: str | None = None
    modify_date: str | None = None
    collection: str | None = None
    type: str | None = None
    views: int | None = None
    downloads: int | None = None


class SearchResponse(BioStudiesModel):
    """Page of studies from GET /studies."""

    hits: list[StudySearchHit] = []
    total_hits: int = 0
    page: int = 0
    size: int = 0
    sort_by: str | None = None
    sort_order: str | None = None
    query: str | None = None


# ---------------------------------------------------------------------------
# Collections, files, auth, statistics
# ---------------------------------------------------------------------------


class Collection(BioStudiesModel):
    key: str = ""
    name: str = ""
    description: str | None = None
    logo: str | None = None
    release_date: str | None = None
    study_count: int | None = None
    url: str | None = None


class FileSearchResponse(BioStudiesModel):
    """Result of GET /files."""

    files: list[FileInfo] = []
    total_files: int = 0
    page: int = 0
    size: int = 0


class AuthToken(BioStudiesModel):
    """Returned by POST /auth/login. ``expires`` is informational only."""

    token: str = ""
    expires: str | None = None
    user: str | None = None


class StudyValidation(BioStudiesModel):
    """Format check plus remote existence check, decoupled."""

    accno: str
    is_valid: bool
    exists: bool = False
    family: str | None = None
    is_public: bool | None = None
    collection: str | None = None
    title: str | None = None


class Statistics(BioStudiesModel):
    """Archive-wide counters from GET /statistics."""

    total_studies: int | None = None
    total_files: int | None = None
    total_size: int | None = None
    last_update: str | None = None
    collections: dict[str, int] = {}
    types: dict[str, int] = {}


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------


class SearchParams(BioStudiesModel):
    """Filters for GET /studies. Dumped by alias, so keys match the API."""

    query: str | None = None
    collection: str | None = None
    type: str | None = None
    author: str | None = None
    keywords: list[str] = []
    page: int | None = None
    size: int | None = None
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] | None = None
    release_date_from: str | None = None
    release_date_to: str | None = None


class FileSearchParams(BioStudiesModel):
    """Filters for GET /files."""

    accno: str | None = None
    path: str | None = None
    name: str | None = None
    type: str | None = None
    min_size: int | None = None
    max_size: int | None = None
