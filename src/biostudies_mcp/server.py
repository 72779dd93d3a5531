"""
MCP server exposing the BioStudies tools over stdio.

stdout carries the MCP protocol, so all logging goes to stderr.
"""

import logging
import sys
from typing import Any

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from biostudies_mcp import __version__
from biostudies_mcp.config import Settings, get_settings
from biostudies_mcp.constants import MAX_BATCH_SIZE, MAX_PAGE_SIZE, MINIMAL_TOOLS
from biostudies_mcp.data_sources.base_client import ClientConfig
from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.models.model_results import ToolResponse
from biostudies_mcp.services.pipeline import (
    ToolArgumentError,
    ToolPipeline,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "biostudies-server"

_ACCNO_PROPERTY = {
    "type": "string",
    "description": "Study accession number (e.g., S-BSST1234, E-MTAB-1234, EMPIAR-1234)",
}
_PAGE_PROPERTY = {"type": "integer", "description": "Page number, starting at 0"}
_SIZE_PROPERTY = {
    "type": "integer",
    "description": f"Results per page (default 20, capped at {MAX_PAGE_SIZE})",
}


TOOLS: list[types.Tool] = [
    types.Tool(
        name="search_studies",
        description=(
            "Search BioStudies by free text, collection, author or keywords. At least "
            "one of query, collection or author is required. When the search service "
            "is unavailable, returns alternative discovery strategies instead."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Free-text search query"},
                "collection": {
                    "type": "string",
                    "description": "Collection key (e.g., arrayexpress, bioimages, empiar)",
                },
                "type": {"type": "string", "description": "Study type filter"},
                "author": {"type": "string", "description": "Author name filter"},
                "keywords": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Keywords; each is sent as a separate filter",
                },
                "page": _PAGE_PROPERTY,
                "size": _SIZE_PROPERTY,
                "sortBy": {"type": "string", "description": "Field to sort by"},
                "sortOrder": {"type": "string", "enum": ["asc", "desc"]},
                "releaseDateFrom": {
                    "type": "string",
                    "description": "Earliest release date (YYYY-MM-DD)",
                },
                "releaseDateTo": {
                    "type": "string",
                    "description": "Latest release date (YYYY-MM-DD)",
                },
            },
        },
    ),
    types.Tool(
        name="get_study_details",
        description=(
            "Get comprehensive information about a specific biological study by its "
            "accession number. This tool provides rich metadata including study "
            "attributes, section details, external references, associated files, and "
            "subsections."
        ),
        inputSchema={
            "type": "object",
            "properties": {"accno": _ACCNO_PROPERTY},
            "required": ["accno"],
        },
    ),
    types.Tool(
        name="list_collections",
        description=(
            "List BioStudies collections (ArrayExpress, BioImages, EMPIAR, ...). Falls "
            "back to the known major collections when the listing is unavailable."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="get_collection_studies",
        description="List studies belonging to one collection, page by page.",
        inputSchema={
            "type": "object",
            "properties": {
                "collection": {"type": "string", "description": "Collection key"},
                "page": _PAGE_PROPERTY,
                "size": _SIZE_PROPERTY,
            },
            "required": ["collection"],
        },
    ),
    types.Tool(
        name="search_files",
        description=(
            "Search files across studies by accession, path, name, type or size. At "
            "least one of accno, name or type is required."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "accno": _ACCNO_PROPERTY,
                "path": {"type": "string", "description": "File path filter"},
                "name": {"type": "string", "description": "File name filter"},
                "type": {"type": "string", "description": "File type filter"},
                "minSize": {"type": "integer", "description": "Minimum size in bytes"},
                "maxSize": {"type": "integer", "description": "Maximum size in bytes"},
            },
        },
    ),
    types.Tool(
        name="get_study_files",
        description=(
            "List the files of a study. When the files service is unavailable, file "
            "information is extracted from the study metadata instead."
        ),
        inputSchema={
            "type": "object",
            "properties": {"accno": _ACCNO_PROPERTY},
            "required": ["accno"],
        },
    ),
    types.Tool(
        name="get_study_links",
        description="List the external links of a study.",
        inputSchema={
            "type": "object",
            "properties": {"accno": _ACCNO_PROPERTY},
            "required": ["accno"],
        },
    ),
    types.Tool(
        name="validate_study_accession",
        description=(
            "Validate a study accession number format and check if the study exists. "
            "Supports all BioStudies accession formats including S-BSST, E-MTAB, "
            "EMPIAR, S-BIAD, and others."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "accno": {
                    "type": "string",
                    "description": "Study accession number to validate",
                }
            },
            "required": ["accno"],
        },
    ),
    types.Tool(
        name="batch_get_studies",
        description=(
            f"Retrieve information for multiple studies in a single request (maximum "
            f"{MAX_BATCH_SIZE} studies). Efficiently processes multiple accession "
            "numbers and provides success/failure status for each."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "accessions": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of study accession numbers to retrieve",
                }
            },
            "required": ["accessions"],
        },
    ),
    types.Tool(
        name="authenticate",
        description=(
            "Log in to BioStudies. The returned token is attached to every later "
            "request made by this server."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "login": {"type": "string"},
                "password": {"type": "string"},
            },
            "required": ["login", "password"],
        },
    ),
    types.Tool(
        name="get_statistics",
        description="Archive-wide BioStudies statistics.",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="get_api_status",
        description="Current status of the BioStudies API.",
        inputSchema={"type": "object", "properties": {}},
    ),
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )


def tools_for_profile(profile: str) -> list[types.Tool]:
    if profile == "minimal":
        return [tool for tool in TOOLS if tool.name in MINIMAL_TOOLS]
    return list(TOOLS)


def to_call_tool_result(response: ToolResponse) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=response.text)],
        isError=response.is_error,
    )


def build_server(pipeline: ToolPipeline, profile: str = "full") -> Server:
    """
    MCP server whose tools are the profile's subset of the pipeline.

    tools/call is registered directly, not via ``Server.call_tool()``,
    which folds every exception into an error-flagged CallToolResult.
    Caller mistakes (bad arguments, unknown tools) raise McpError and reach
    the client as JSON-RPC errors; upstream failures stay in-band results.
    """
    server: Server = Server(SERVER_NAME, version=__version__)
    tools = tools_for_profile(profile)
    enabled = {tool.name for tool in tools}

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tools

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        name = req.params.name
        arguments: dict[str, Any] = req.params.arguments or {}
        if name not in enabled:
            raise McpError(
                types.ErrorData(
                    code=types.METHOD_NOT_FOUND,
                    message=f"Unknown tool: {name}. Available tools: {', '.join(sorted(enabled))}",
                )
            )
        try:
            response = await pipeline.call(name, arguments)
        except ToolArgumentError as e:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e
        except UnknownToolError as e:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(e))) from e
        return types.ServerResult(to_call_tool_result(response))

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve(settings: Settings | None = None) -> None:
    """Run the server on stdio until the client disconnects."""
    settings = settings or get_settings()
    client = BioStudiesClient(ClientConfig.from_settings(settings))
    pipeline = ToolPipeline(client)

    if settings.biostudies_login and settings.biostudies_password:
        result = await client.authenticate(
            settings.biostudies_login, settings.biostudies_password
        )
        if not result.ok:
            logger.warning("Startup authentication failed: %s", result.error)

    server = build_server(pipeline, settings.tool_profile)
    logger.info("BioStudies MCP server running on stdio (profile=%s)", settings.tool_profile)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
    finally:
        await pipeline.close()
