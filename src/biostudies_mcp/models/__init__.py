"""Data models for BioStudies MCP."""

from biostudies_mcp.models.model_biostudies import (
    Attribute,
    Author,
    AuthToken,
    Collection,
    FileInfo,
    FileSearchParams,
    FileSearchResponse,
    Link,
    LinkGroup,
    SearchParams,
    SearchResponse,
    Section,
    Statistics,
    Study,
    StudySearchHit,
    StudyValidation,
)
from biostudies_mcp.models.model_results import (
    ApiFailure,
    ApiResult,
    ApiSuccess,
    BatchFailure,
    BatchResult,
    ToolResponse,
)

__all__ = [
    "ApiFailure",
    "ApiResult",
    "ApiSuccess",
    "Attribute",
    "Author",
    "AuthToken",
    "BatchFailure",
    "BatchResult",
    "Collection",
    "FileInfo",
    "FileSearchParams",
    "FileSearchResponse",
    "Link",
    "LinkGroup",
    "SearchParams",
    "SearchResponse",
    "Section",
    "Statistics",
    "Study",
    "StudySearchHit",
    "StudyValidation",
    "ToolResponse",
]
