"""
Tool pipeline: arguments in, text out.

For every tool call the pipeline
  1. validates required arguments (ToolArgumentError on caller mistakes),
  2. defaults and clamps paging arguments,
  3. calls BioStudiesClient,
  4. renders success, routes 404s on degradable endpoints to
     FallbackProvider, and turns every other failure into an
     error-flagged ToolResponse.

No step retries; each upstream call is made at most once per tool call.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from biostudies_mcp.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_BATCH_SIZE,
    MAX_PAGE_SIZE,
)
from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.helpers.accessions import is_valid_accession
from biostudies_mcp.models.model_biostudies import FileSearchParams, SearchParams
from biostudies_mcp.models.model_results import ApiFailure, ToolResponse
from biostudies_mcp.services import renderer
from biostudies_mcp.services.fallback import FallbackProvider

logger = logging.getLogger(__name__)

ToolArguments = dict[str, Any]
ToolHandler = Callable[[ToolArguments], Awaitable[ToolResponse]]


class ToolArgumentError(ValueError):
    """A required argument is missing or malformed. Never sent upstream."""


class UnknownToolError(LookupError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        super().__init__(f"Unknown tool: {name}. Available tools: {', '.join(available)}")


# ── Argument helpers ─────────────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_string(args: ToolArguments, key: str, message: str) -> str:
    value = args.get(key)
    if not value or not isinstance(value, str):
        raise ToolArgumentError(message)
    return value


def require_accession(args: ToolArguments) -> str:
    """Required, well-formed accession; malformed input never reaches the client."""
    accno = require_string(
        args, "accno", "Study accession number is required and must be a string"
    )
    if not is_valid_accession(accno):
        raise ToolArgumentError(f"Invalid accession number format: {accno}")
    return accno


def optional_string(args: ToolArguments, key: str) -> str | None:
    value = args.get(key)
    return value if isinstance(value, str) and value else None


def optional_size(args: ToolArguments, key: str) -> int | None:
    value = args.get(key)
    return int(value) if _is_number(value) and value >= 0 else None


def paging(args: ToolArguments) -> tuple[int, int]:
    """(page, size): page defaults to 0, size defaults to 20 and is capped at 100."""
    page = args.get("page")
    size = args.get("size")
    page = int(page) if _is_number(page) and page > 0 else DEFAULT_PAGE
    size = min(int(size), MAX_PAGE_SIZE) if _is_number(size) and size >= 1 else DEFAULT_PAGE_SIZE
    return page, size


def error_response(text: str) -> ToolResponse:
    return ToolResponse(text=text, is_error=True)


# ── Pipeline ─────────────────────────────────────────────────────────────────


class ToolPipeline:
    """Runs BioStudies tools by name."""

    def __init__(
        self,
        client: BioStudiesClient | None = None,
        fallback: FallbackProvider | None = None,
    ) -> None:
        self.client = client or BioStudiesClient()
        self.fallback = fallback or FallbackProvider(self.client)
        self._handlers: dict[str, ToolHandler] = {
            "search_studies": self.search_studies,
            "get_study_details": self.get_study_details,
            "list_collections": self.list_collections,
            "get_collection_studies": self.get_collection_studies,
            "search_files": self.search_files,
            "get_study_files": self.get_study_files,
            "get_study_links": self.get_study_links,
            "validate_study_accession": self.validate_study_accession,
            "batch_get_studies": self.batch_get_studies,
            "authenticate": self.authenticate,
            "get_statistics": self.get_statistics,
            "get_api_status": self.get_api_status,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def call(self, name: str, arguments: ToolArguments | None = None) -> ToolResponse:
        """Dispatch a tool call. Raises ToolArgumentError / UnknownToolError."""
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name, self.tool_names)
        logger.info("Tool call %s", name)
        response = await handler(arguments or {})
        if response.is_error:
            logger.warning("Tool %s returned an error: %s", name, response.text)
        return response

    async def close(self) -> None:
        await self.client.close()

    # -- Studies --------------------------------------------------------------

    async def search_studies(self, args: ToolArguments) -> ToolResponse:
        if not any(optional_string(args, key) for key in ("query", "collection", "author")):
            raise ToolArgumentError(
                "At least one search parameter (query, collection, or author) is required"
            )

        sort_order = optional_string(args, "sortOrder")
        if sort_order is not None and sort_order not in ("asc", "desc"):
            raise ToolArgumentError("sortOrder must be either 'asc' or 'desc'")

        keywords = args.get("keywords")
        page, size = paging(args)
        params = SearchParams(
            query=optional_string(args, "query"),
            collection=optional_string(args, "collection"),
            type=optional_string(args, "type"),
            author=optional_string(args, "author"),
            keywords=[k for k in keywords if isinstance(k, str) and k]
            if isinstance(keywords, list)
            else [],
            page=page,
            size=size,
            sort_by=optional_string(args, "sortBy"),
            sort_order=sort_order,
            release_date_from=optional_string(args, "releaseDateFrom"),
            release_date_to=optional_string(args, "releaseDateTo"),
        )

        result = await self.client.search_studies(params)
        if isinstance(result, ApiFailure):
            if result.is_not_found:
                logger.info("Search endpoint unavailable, serving search alternatives")
                return self.fallback.search_alternatives(params)
            return error_response(f"Error searching BioStudies: {result.error}")

        return ToolResponse(text=renderer.render_search_results(result.data, size))

    async def get_study_details(self, args: ToolArguments) -> ToolResponse:
        accno = require_accession(args)
        result = await self.client.get_study_details(accno)
        if isinstance(result, ApiFailure):
            return error_response(f"Error retrieving study {accno}: {result.error}")
        return ToolResponse(text=renderer.render_study(result.data, accno))

    async def validate_study_accession(self, args: ToolArguments) -> ToolResponse:
        accno = require_string(
            args, "accno", "Accession number is required and must be a string"
        )
        result = await self.client.validate_study_accession(accno)
        if isinstance(result, ApiFailure):
            return error_response(f"Error validating accession {accno}: {result.error}")
        return ToolResponse(text=renderer.render_validation(result.data))

    async def batch_get_studies(self, args: ToolArguments) -> ToolResponse:
        accessions = args.get("accessions")
        if not isinstance(accessions, list) or not all(
            isinstance(accno, str) for accno in accessions
        ):
            raise ToolArgumentError(
                "Accessions parameter is required and must be an array of strings"
            )

        if not accessions:
            return ToolResponse(text="No accession numbers provided")
        if len(accessions) > MAX_BATCH_SIZE:
            return ToolResponse(
                text=f"Maximum {MAX_BATCH_SIZE} studies can be processed at once"
            )

        result = await self.client.batch_get_studies(accessions)
        if isinstance(result, ApiFailure):
            return error_response(f"Error in batch operation: {result.error}")
        return ToolResponse(text=renderer.render_batch(result.data))

    # -- Collections ----------------------------------------------------------

    async def list_collections(self, args: ToolArguments) -> ToolResponse:
        result = await self.client.get_collections()
        if isinstance(result, ApiFailure):
            if result.is_not_found:
                logger.info("Collections endpoint unavailable, serving known collections")
                return self.fallback.known_collections()
            return error_response(f"Error retrieving collections: {result.error}")
        return ToolResponse(text=renderer.render_collections(result.data))

    async def get_collection_studies(self, args: ToolArguments) -> ToolResponse:
        collection = require_string(
            args, "collection", "Collection key is required and must be a string"
        )
        page, size = paging(args)

        result = await self.client.get_collection_studies(collection, page, size)
        if isinstance(result, ApiFailure):
            if result.is_not_found:
                # Same /studies endpoint as search.
                return self.fallback.search_alternatives(SearchParams(collection=collection))
            return error_response(
                f"Error retrieving studies from collection {collection}: {result.error}"
            )

        return ToolResponse(
            text=renderer.render_collection_studies(collection, result.data, page, size)
        )

    # -- Files and links ------------------------------------------------------

    async def search_files(self, args: ToolArguments) -> ToolResponse:
        if not any(optional_string(args, key) for key in ("accno", "name", "type")):
            raise ToolArgumentError(
                "At least one search parameter (accno, name, or type) is required"
            )
        params = FileSearchParams(
            accno=optional_string(args, "accno"),
            path=optional_string(args, "path"),
            name=optional_string(args, "name"),
            type=optional_string(args, "type"),
            min_size=optional_size(args, "minSize"),
            max_size=optional_size(args, "maxSize"),
        )
        result = await self.client.search_files(params)
        if isinstance(result, ApiFailure):
            return error_response(f"Error searching files: {result.error}")
        return ToolResponse(text=renderer.render_file_search(result.data))

    async def get_study_files(self, args: ToolArguments) -> ToolResponse:
        accno = require_accession(args)
        result = await self.client.get_study_files(accno)
        if isinstance(result, ApiFailure):
            if result.is_not_found:
                logger.info("Files endpoint unavailable for %s, reading study metadata", accno)
                return await self.fallback.files_from_study_metadata(accno)
            return error_response(f"Error retrieving files for study {accno}: {result.error}")
        return ToolResponse(text=renderer.render_study_files(accno, result.data))

    async def get_study_links(self, args: ToolArguments) -> ToolResponse:
        accno = require_accession(args)
        result = await self.client.get_study_links(accno)
        if isinstance(result, ApiFailure):
            return error_response(f"Error retrieving links for study {accno}: {result.error}")
        return ToolResponse(text=renderer.render_links(accno, result.data))

    # -- Auth and service info ------------------------------------------------

    async def authenticate(self, args: ToolArguments) -> ToolResponse:
        login = optional_string(args, "login")
        password = optional_string(args, "password")
        if not login or not password:
            raise ToolArgumentError("Both login and password are required for authentication")

        result = await self.client.authenticate(login, password)
        if isinstance(result, ApiFailure):
            return error_response(f"Authentication failed: {result.error}")
        return ToolResponse(text=renderer.render_auth(result.data))

    async def get_statistics(self, args: ToolArguments) -> ToolResponse:
        result = await self.client.get_statistics()
        if isinstance(result, ApiFailure):
            return error_response(f"Error retrieving statistics: {result.error}")
        return ToolResponse(text=renderer.render_statistics(result.data))

    async def get_api_status(self, args: ToolArguments) -> ToolResponse:
        result = await self.client.get_api_status()
        if isinstance(result, ApiFailure):
            return error_response(f"Error retrieving API status: {result.error}")
        return ToolResponse(text=renderer.render_api_status(result.data))
