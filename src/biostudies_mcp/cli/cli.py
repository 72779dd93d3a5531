"""Command-line interface for the BioStudies MCP server."""

import asyncio
import sys
from typing import Any

import click

from biostudies_mcp.config import get_settings
from biostudies_mcp.data_sources.base_client import ClientConfig
from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.models.model_results import ToolResponse
from biostudies_mcp.server import configure_logging, serve as serve_stdio
from biostudies_mcp.services.pipeline import ToolArgumentError, ToolPipeline


async def _call(tool: str, arguments: dict[str, Any]) -> ToolResponse:
    settings = get_settings()
    pipeline = ToolPipeline(BioStudiesClient(ClientConfig.from_settings(settings)))
    try:
        return await pipeline.call(tool, arguments)
    finally:
        await pipeline.close()


def _run(tool: str, arguments: dict[str, Any]) -> None:
    """Run one tool, print its text, exit 1 if it is an error."""
    try:
        response = asyncio.run(_call(tool, arguments))
    except ToolArgumentError as e:
        raise click.UsageError(str(e)) from e

    click.echo(response.text)
    if response.is_error:
        sys.exit(1)


@click.group()
@click.version_option(package_name="biostudies-mcp")
@click.option("--log-level", default=None, help="Override BIOSTUDIES log level")
def main(log_level: str | None):
    """BioStudies MCP: EBI BioStudies tools for MCP clients."""
    configure_logging(log_level or get_settings().log_level)


@main.command()
def serve():
    """Run the MCP server on stdio."""
    asyncio.run(serve_stdio())


@main.command()
@click.argument("accno")
@click.option("--files", is_flag=True, help="List the study's files instead")
@click.option("--links", is_flag=True, help="List the study's external links instead")
def study(accno: str, files: bool, links: bool):
    """Show one study by accession number."""
    if files and links:
        raise click.UsageError("--files and --links are mutually exclusive")
    tool = "get_study_files" if files else "get_study_links" if links else "get_study_details"
    _run(tool, {"accno": accno})


@main.command()
@click.argument("accno")
def validate(accno: str):
    """Check an accession's format and whether the study exists."""
    _run("validate_study_accession", {"accno": accno})


@main.command()
@click.argument("accessions", nargs=-1, required=True)
def batch(accessions: tuple[str, ...]):
    """Fetch several studies at once."""
    _run("batch_get_studies", {"accessions": list(accessions)})


@main.command()
@click.option("-q", "--query", help="Free-text query")
@click.option("-c", "--collection", help="Collection key, e.g. arrayexpress")
@click.option("-a", "--author", help="Author name")
@click.option("-k", "--keyword", "keywords", multiple=True, help="Keyword (repeatable)")
@click.option("--page", default=0, show_default=True, help="Page number")
@click.option("--size", default=20, show_default=True, help="Results per page")
@click.option("--sort-by", help="Field to sort by")
@click.option("--sort-order", type=click.Choice(["asc", "desc"]))
def search(
    query: str | None,
    collection: str | None,
    author: str | None,
    keywords: tuple[str, ...],
    page: int,
    size: int,
    sort_by: str | None,
    sort_order: str | None,
):
    """Search BioStudies."""
    arguments: dict[str, Any] = {
        "query": query,
        "collection": collection,
        "author": author,
        "keywords": list(keywords),
        "page": page,
        "size": size,
        "sortBy": sort_by,
        "sortOrder": sort_order,
    }
    _run("search_studies", {k: v for k, v in arguments.items() if v is not None})


@main.command()
@click.argument("collection", required=False)
@click.option("--page", default=0, show_default=True, help="Page number")
@click.option("--size", default=20, show_default=True, help="Results per page")
def collections(collection: str | None, page: int, size: int):
    """List collections, or the studies in COLLECTION."""
    if collection:
        _run("get_collection_studies", {"collection": collection, "page": page, "size": size})
    else:
        _run("list_collections", {})


if __name__ == "__main__":
    main()
