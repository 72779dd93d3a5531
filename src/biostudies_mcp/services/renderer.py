"""
Text rendering for BioStudies payloads.

Every function here is pure: same model in, byte-identical text out. Output
uses markdown-style emphasis so it reads well both to people and to LLM
callers. Optional fields that are absent are left out entirely; no block is
ever rendered with an empty body.
"""

from typing import Any

from biostudies_mcp.constants import (
    ACCESSION_FORMAT_HINTS,
    COLLECTION_AUTHOR_LIMIT,
    MAX_RENDERED_FILES,
    MAX_RENDERED_SUBSECTIONS,
    SEARCH_AUTHOR_LIMIT,
    SIZE_UNITS,
)
from biostudies_mcp.models.model_biostudies import (
    AuthToken,
    Collection,
    FileInfo,
    FileSearchResponse,
    Link,
    LinkEntry,
    LinkGroup,
    SearchResponse,
    Section,
    Statistics,
    Study,
    StudySearchHit,
    StudyValidation,
)
from biostudies_mcp.models.model_results import BatchResult

BLOCK_SEPARATOR = "\n\n"


# ── Primitives ───────────────────────────────────────────────────────────────


def format_file_size(size: int | float) -> str:
    """Base-1024 size with at most two decimals, trailing zeros dropped.

    >>> format_file_size(1536)
    '1.5 KB'
    """
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    number = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{number} {SIZE_UNITS[unit]}"


def format_authors(authors: list[str], limit: int) -> str:
    shown = ", ".join(authors[:limit])
    return f"{shown} et al." if len(authors) > limit else shown


def format_count(value: int) -> str:
    return f"{value:,}"


def format_stats(views: int | None, downloads: int | None) -> str | None:
    stats = []
    if views:
        stats.append(f"{views} views")
    if downloads:
        stats.append(f"{downloads} downloads")
    return ", ".join(stats) or None


def pagination_trailer(
    page: int, size: int, shown: int, total: int, noun: str = "results"
) -> str | None:
    """Trailer line for a page of results, or None when everything is shown.

    A page is "full" when it returned at least ``size`` hits; a full page
    or any page past the first gets the page form.
    """
    if page > 0 or shown >= size:
        return f"Page {page + 1}, showing {shown} of {total} total {noun}."
    if shown < total:
        return f"Showing first {shown} of {total} total {noun}."
    return None


def _with_trailer(body: str, trailer: str | None) -> str:
    return f"{body}{BLOCK_SEPARATOR}{trailer}" if trailer else body


# ── Studies ──────────────────────────────────────────────────────────────────


def render_search_hit(hit: StudySearchHit, author_limit: int = SEARCH_AUTHOR_LIMIT) -> str:
    lines = [f"• **{hit.accno}**: {hit.title}"]
    if hit.authors:
        lines.append(f"  Authors: {format_authors(hit.authors, author_limit)}")
    if hit.collection:
        lines.append(f"  Collection: {hit.collection}")
    if hit.type:
        lines.append(f"  Type: {hit.type}")
    if hit.release_date:
        lines.append(f"  Released: {hit.release_date}")
    stats = format_stats(hit.views, hit.downloads)
    if stats:
        lines.append(f"  Stats: {stats}")
    return "\n".join(lines)


def render_search_results(response: SearchResponse, requested_size: int) -> str:
    if not response.hits:
        return "No studies found matching the search criteria"

    body = BLOCK_SEPARATOR.join(render_search_hit(hit) for hit in response.hits)
    trailer = pagination_trailer(
        response.page, requested_size, len(response.hits), response.total_hits
    )
    return _with_trailer(
        f"Found {response.total_hits} studies:{BLOCK_SEPARATOR}{body}", trailer
    )


def render_collection_studies(
    collection: str, response: SearchResponse, page: int, size: int
) -> str:
    if not response.hits:
        return f"No studies found in collection: {collection}"

    blocks = []
    for hit in response.hits:
        lines = [f"• **{hit.accno}**: {hit.title}"]
        if hit.authors:
            lines.append(
                f"  Authors: {format_authors(hit.authors, COLLECTION_AUTHOR_LIMIT)}"
            )
        if hit.release_date:
            lines.append(f"  Released: {hit.release_date}")
        blocks.append("\n".join(lines))

    trailer = pagination_trailer(
        page,
        size,
        len(response.hits),
        response.total_hits,
        noun=f"studies in {collection}",
    )
    header = f'Studies in collection "{collection}" ({response.total_hits} total):'
    return _with_trailer(header + BLOCK_SEPARATOR + BLOCK_SEPARATOR.join(blocks), trailer)


def _attribute_lines(attributes: list, skip: str | None = None) -> list[str]:
    return [
        f"  • **{attr.name}:** {attr.value}" for attr in attributes if attr.name != skip
    ]


def _reference_lines(links: list[LinkEntry]) -> list[str]:
    lines = []
    for index, entry in enumerate(links, start=1):
        if isinstance(entry, LinkGroup):
            for sub_index, link in enumerate(entry.links, start=1):
                if not link.url:
                    continue
                lines.append(f"  {index}.{sub_index}. {link.url}")
                lines.extend(
                    f"       {attr.name}: {attr.value}" for attr in link.attributes
                )
        elif entry.url:
            lines.append(f"  {index}. {entry.url}")
    return lines


def _file_line(file: FileInfo) -> str:
    line = f"  • {file.display_name}"
    if file.size:
        line += f" ({format_file_size(file.size)})"
    if file.type:
        line += f" [{file.type}]"
    return line


def _section_blocks(section: Section) -> list[str]:
    blocks = []

    if section.attributes:
        blocks.append("\n".join(["**Section Details:**", *_attribute_lines(section.attributes)]))

    references = _reference_lines(section.links)
    if references:
        blocks.append("\n".join(["**External References:**", *references]))

    if section.files:
        lines = ["**Associated Files:**"]
        lines.extend(_file_line(f) for f in section.files[:MAX_RENDERED_FILES])
        hidden = len(section.files) - MAX_RENDERED_FILES
        if hidden > 0:
            lines.append(f"  ... and {hidden} more files")
        blocks.append("\n".join(lines))

    if section.subsections:
        count = len(section.subsections)
        lines = [f"**Subsections:** {count} subsections available"]
        for index, sub in enumerate(section.subsections[:MAX_RENDERED_SUBSECTIONS], start=1):
            if not sub.type:
                continue
            line = f"  {index}. {sub.type}"
            if sub.attributes:
                line += f" ({len(sub.attributes)} attributes)"
            lines.append(line)
        hidden = count - MAX_RENDERED_SUBSECTIONS
        if hidden > 0:
            lines.append(f"  ... and {hidden} more subsections")
        blocks.append("\n".join(lines))

    return blocks


def render_study(study: Study, accno: str) -> str:
    """Full study details: metadata, section tree summary, authors, stats."""
    blocks = [f"**Study: {study.accno or accno}**\n**Title:** {study.display_title}"]

    attribute_lines = _attribute_lines(study.attributes, skip="Title")
    if attribute_lines:
        blocks.append("\n".join(["**Study Attributes:**", *attribute_lines]))

    overview = []
    if study.type:
        overview.append(f"**Study Type:** {study.type}")
    if study.collection:
        overview.append(f"**Collection:** {study.collection}")
    if study.release_date:
        overview.append(f"**Released:** {study.release_date}")
    if study.modify_date:
        overview.append(f"**Last Modified:** {study.modify_date}")
    if study.is_public is not None:
        overview.append(f"**Access:** {'Public' if study.is_public else 'Restricted'}")
    if overview:
        blocks.append("\n".join(overview))

    if study.section:
        blocks.extend(_section_blocks(study.section))

    if study.authors:
        lines = ["**Authors:**"]
        for author in study.authors:
            line = f"  • {author.name}"
            if author.affiliation:
                line += f" ({author.affiliation})"
            if author.orcid:
                line += f" [ORCID: {author.orcid}]"
            lines.append(line)
        blocks.append("\n".join(lines))

    if study.description:
        blocks.append(f"**Description:** {study.description}")

    stats = format_stats(study.views, study.downloads)
    if stats:
        blocks.append(f"**Statistics:** {stats}")

    return BLOCK_SEPARATOR.join(blocks)


# ── Files ────────────────────────────────────────────────────────────────────


def render_file_block(file: FileInfo, *, include_md5: bool = False) -> str:
    lines = [f"• **{file.display_name}**"]
    if file.path and file.path != file.name:
        lines.append(f"  Path: {file.path}")
    if file.size:
        lines.append(f"  Size: {format_file_size(file.size)}")
    if file.type:
        lines.append(f"  Type: {file.type}")
    if include_md5 and file.md5:
        lines.append(f"  MD5: {file.md5}")
    return "\n".join(lines)


def total_size_line(files: list[FileInfo]) -> str:
    total = sum(f.size or 0 for f in files)
    return f"\nTotal size: {format_file_size(total)}" if total > 0 else ""


def render_study_files(accno: str, files: list[FileInfo]) -> str:
    if not files:
        return f"No files found for study {accno}"
    body = BLOCK_SEPARATOR.join(render_file_block(f) for f in files)
    return (
        f"Files in study {accno} ({len(files)} files):{total_size_line(files)}"
        f"{BLOCK_SEPARATOR}{body}"
    )


def render_file_search(response: FileSearchResponse) -> str:
    if not response.files:
        return "No files found matching the search criteria"
    blocks = []
    for file in response.files:
        lines = [f"• **{file.display_name}**"]
        if file.path:
            lines.append(f"  Path: {file.path}")
        if file.size:
            lines.append(f"  Size: {format_file_size(file.size)}")
        if file.type:
            lines.append(f"  Type: {file.type}")
        if file.md5:
            lines.append(f"  MD5: {file.md5}")
        blocks.append("\n".join(lines))
    total = response.total_files or len(response.files)
    return f"Found {total} files:{BLOCK_SEPARATOR}" + BLOCK_SEPARATOR.join(blocks)


# ── Links ────────────────────────────────────────────────────────────────────


def _link_block(label: str, link: Link) -> str:
    text = f"{label}. {link.url}"
    if link.attributes:
        attrs = ", ".join(f"{attr.name}: {attr.value}" for attr in link.attributes)
        text += f"\n   {attrs}"
    return text


def render_links(accno: str, links: list[LinkEntry]) -> str:
    blocks = []
    count = 0
    for index, entry in enumerate(links, start=1):
        if isinstance(entry, LinkGroup):
            for sub_index, link in enumerate(entry.links, start=1):
                if link.url:
                    blocks.append(_link_block(f"{index}.{sub_index}", link))
                    count += 1
        elif entry.url:
            blocks.append(_link_block(str(index), entry))
            count += 1

    if not blocks:
        return f"No external links found for study {accno}"
    return (
        f"External links for study {accno} ({count} links):{BLOCK_SEPARATOR}"
        + BLOCK_SEPARATOR.join(blocks)
    )


# ── Collections ──────────────────────────────────────────────────────────────


def render_collections(collections: list[Collection]) -> str:
    if not collections:
        return "No collections found"

    blocks = []
    for collection in collections:
        lines = [f"• **{collection.key}**: {collection.name}"]
        if collection.description:
            lines.append(f"  Description: {collection.description}")
        if collection.study_count is not None:
            lines.append(f"  Studies: {format_count(collection.study_count)}")
        if collection.release_date:
            lines.append(f"  Release Date: {collection.release_date}")
        if collection.url:
            lines.append(f"  URL: {collection.url}")
        blocks.append("\n".join(lines))

    return (
        f"Available Collections ({len(collections)} total):{BLOCK_SEPARATOR}"
        + BLOCK_SEPARATOR.join(blocks)
    )


# ── Validation, batch, auth ──────────────────────────────────────────────────


def render_validation(validation: StudyValidation) -> str:
    accno = validation.accno
    if not validation.is_valid:
        formats = "\n".join(f"• {hint}" for hint in ACCESSION_FORMAT_HINTS)
        return (
            f'❌ Invalid accession number format: "{accno}"\n\n'
            f"Valid formats include:\n{formats}"
        )

    if not validation.exists:
        return (
            f'⚠️ Valid format but study not found: "{accno}"\n\n'
            "The accession number format is correct but no study exists "
            "with this identifier."
        )

    lines = [f'✅ Valid study accession: "{accno}"']
    if validation.family:
        lines.append(f"Format: {validation.family}")
    if validation.title:
        lines.append(f"Title: {validation.title}")
    if validation.collection:
        lines.append(f"Collection: {validation.collection}")
    if validation.is_public is not None:
        lines.append(f"Access: {'Public' if validation.is_public else 'Restricted'}")
    return "\n".join(lines)


def render_batch(result: BatchResult) -> str:
    blocks = [
        "**Batch Processing Results:**",
        f"**Summary:** {result.success_count}/{result.total} studies retrieved successfully",
    ]
    if result.successful:
        lines = [f"**Successfully Retrieved ({result.success_count}):**"]
        lines.extend(f"  ✅ {accno}" for accno in result.successful)
        blocks.append("\n".join(lines))
    if result.failed:
        lines = [f"**Failed ({result.failure_count}):**"]
        lines.extend(f"  ❌ {f.accno}: {f.error}" for f in result.failed)
        blocks.append("\n".join(lines))
    return BLOCK_SEPARATOR.join(blocks)


def render_auth(token: AuthToken) -> str:
    lines = ["✅ Authentication successful"]
    if token.user:
        lines.append(f"User: {token.user}")
    if token.expires:
        lines.append(f"Token expires: {token.expires}")
    lines.append("")
    lines.append("You can now access protected studies and submit data.")
    return "\n".join(lines)


# ── Service info ─────────────────────────────────────────────────────────────


def render_statistics(stats: Statistics) -> str:
    blocks = []

    totals = []
    if stats.total_studies is not None:
        totals.append(f"  • Total studies: {format_count(stats.total_studies)}")
    if stats.total_files is not None:
        totals.append(f"  • Total files: {format_count(stats.total_files)}")
    if stats.total_size is not None:
        totals.append(f"  • Total size: {format_file_size(stats.total_size)}")
    if stats.last_update:
        totals.append(f"  • Last update: {stats.last_update}")
    if totals:
        blocks.append("\n".join(["**BioStudies Statistics:**", *totals]))

    for title, counts in (
        ("Studies by Collection", stats.collections),
        ("Studies by Type", stats.types),
    ):
        if counts:
            lines = [f"**{title}:**"]
            lines.extend(
                f"  • {key}: {format_count(value)}" for key, value in sorted(counts.items())
            )
            blocks.append("\n".join(lines))

    return BLOCK_SEPARATOR.join(blocks) or "No statistics available"


def render_api_status(status: Any) -> str:
    if isinstance(status, dict) and status:
        lines = ["**BioStudies API Status:**"]
        lines.extend(f"  • {key}: {value}" for key, value in status.items())
        return "\n".join(lines)
    if isinstance(status, str) and status.strip():
        return f"**BioStudies API Status:** {status.strip()}"
    return "BioStudies API responded with no status details"
