"""
Local substitutes for withdrawn BioStudies sub-APIs.

The search, collections and per-study files endpoints have been observed
to return 404 while study details keep working. When that happens the
pipeline hands over to FallbackProvider, which builds guidance from static
tables or re-derives data through the study-details endpoint.

Nothing here raises: every branch produces a renderable ToolResponse.
"""

import logging

from biostudies_mcp.constants import (
    ARRAYEXPRESS_WEBSITE,
    BIOSTUDIES_STUDY_PAGE,
    BIOSTUDIES_WEBSITE,
    COLLECTION_SUGGESTIONS,
    KNOWN_COLLECTIONS,
    MAX_COLLECTION_SUGGESTIONS,
)
from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.helpers.accessions import canonicalize, is_valid_accession
from biostudies_mcp.models.model_biostudies import FileInfo, SearchParams, Study
from biostudies_mcp.models.model_results import ToolResponse
from biostudies_mcp.services.renderer import (
    BLOCK_SEPARATOR,
    render_file_block,
    total_size_line,
)

logger = logging.getLogger(__name__)

AVAILABLE_TOOLS_BLOCK = "\n".join(
    [
        "**Available Functionality:**",
        "  ✅ Individual study retrieval: Use `get_study_details` with known accession numbers",
        "  ✅ Accession validation: Use `validate_study_accession` to check format",
        "  ✅ Batch study retrieval: Use `batch_get_studies` for multiple studies",
    ]
)

COMMON_PATTERNS_BLOCK = "\n".join(
    [
        "**Try Common Accession Patterns:**",
        "  • **ArrayExpress**: E-MTAB-1234, E-GEOD-1234, E-MEXP-1234",
        "  • **BioImages**: S-BIAD1234",
        "  • **EMPIAR**: EMPIAR-10001",
        "  • **BioStudies**: S-BSST1234",
    ]
)


def collection_suggestions(collection: str) -> list[str]:
    """Example accessions for a known collection key; empty for unknown keys."""
    examples = COLLECTION_SUGGESTIONS.get(collection.strip().lower(), [])
    return [a for a in examples if is_valid_accession(a)][:MAX_COLLECTION_SUGGESTIONS]


def extract_section_files(study: Study) -> list[FileInfo]:
    """Files on the root section plus those one subsection level down."""
    section = study.section
    if section is None:
        return []
    files = list(section.files)
    for subsection in section.subsections:
        files.extend(subsection.files)
    return files


class FallbackProvider:
    """Builds substitute responses when a degradable endpoint returns 404."""

    def __init__(self, client: BioStudiesClient) -> None:
        self.client = client

    def search_alternatives(self, params: SearchParams) -> ToolResponse:
        blocks = [
            "🔍 **BioStudies Search Currently Unavailable**",
            "The BioStudies search service is not available right now. "
            "Here are alternative approaches to find studies:",
        ]

        if params.collection:
            lines = [f'**Collection-Based Discovery for "{params.collection}":**']
            suggestions = collection_suggestions(params.collection)
            if suggestions:
                lines.extend(f"  • Try accession: {accno}" for accno in suggestions)
            else:
                lines.append(
                    f"  • Use individual study lookup with known {params.collection} "
                    "accession patterns"
                )
            blocks.append("\n".join(lines))

        if params.query:
            blocks.append(
                "\n".join(
                    [
                        f'**Alternative Search Strategies for "{params.query}":**',
                        f"  • Use the EBI BioStudies website directly: {BIOSTUDIES_WEBSITE}",
                        f"  • Try related databases like ArrayExpress: {ARRAYEXPRESS_WEBSITE}",
                        "  • Search by publication title or author name on the BioStudies website",
                    ]
                )
            )

        if params.author:
            blocks.append(
                "\n".join(
                    [
                        f'**Finding Studies by "{params.author}":**',
                        "  • Look up the author's publications and use the accession "
                        "numbers cited in their data availability statements",
                    ]
                )
            )

        blocks.append(COMMON_PATTERNS_BLOCK)
        blocks.append(AVAILABLE_TOOLS_BLOCK)
        blocks.append(
            "**Example Usage:**\n"
            'Try: get_study_details with accession "E-MTAB-1234" or similar known '
            "accession numbers"
        )
        return ToolResponse(text=BLOCK_SEPARATOR.join(blocks))

    def known_collections(self) -> ToolResponse:
        entries = []
        for collection in KNOWN_COLLECTIONS:
            entries.append(
                "\n".join(
                    [
                        f"• **{collection['key']}**: {collection['name']}",
                        f"  Description: {collection['description']}",
                        f"  Accession Pattern: {collection['accession_pattern']}",
                        f"  Website: {collection['website']}",
                        f"  Example Accessions: {', '.join(collection['examples'])}",
                    ]
                )
            )

        guidance = ["**Collection-Specific Guidance:**"]
        guidance.extend(
            f"• **{collection['name']}**: {collection['guidance']}"
            for collection in KNOWN_COLLECTIONS
        )

        blocks = [
            "📚 **Known BioStudies Collections**",
            "⚠️ **Note**: The collections listing is currently unavailable. "
            "Below are the known major collections:",
            BLOCK_SEPARATOR.join(entries),
            "\n".join(
                [
                    "**How to Use:**",
                    "• Use `get_study_details` with any of the example accession numbers above",
                    "• Try `validate_study_accession` to check if a specific accession exists",
                    "• Use `batch_get_studies` to retrieve multiple studies at once",
                ]
            ),
            "\n".join(guidance),
        ]
        return ToolResponse(text=BLOCK_SEPARATOR.join(blocks))

    async def files_from_study_metadata(self, accno: str) -> ToolResponse:
        """Re-derive a file listing from the study's section tree."""
        try:
            return await self._files_from_study_metadata(accno)
        except Exception as e:
            logger.warning("File extraction for %s failed: %s", accno, e)
            return ToolResponse(
                text=self._files_unavailable(
                    accno,
                    "an unexpected problem occurred while extracting file information "
                    "from study metadata",
                    str(e) or type(e).__name__,
                )
            )

    async def _files_from_study_metadata(self, accno: str) -> ToolResponse:
        display = canonicalize(accno)
        details = await self.client.get_study_details(accno)

        if not details.ok:
            return ToolResponse(
                text=self._files_unavailable(
                    accno,
                    "study metadata could not be retrieved to extract file information",
                    details.error,
                )
            )

        files = extract_section_files(details.data)
        header = f"📁 **Files for {display} (via metadata extraction)**"

        if not files:
            return ToolResponse(
                text=BLOCK_SEPARATOR.join(
                    [
                        header,
                        "⚠️ **Note**: The dedicated files listing is currently "
                        "unavailable, so file information was read from study metadata.",
                        "No files found in the study metadata. This could mean:\n"
                        "• The study has no associated files\n"
                        "• File information is not embedded in the metadata\n"
                        "• Files are referenced externally",
                        "**Alternative Approaches:**\n"
                        "• Check study details with `get_study_details` for external references\n"
                        f"• Visit the study page directly: {BIOSTUDIES_STUDY_PAGE.format(accno=accno)}",
                    ]
                )
            )

        body = BLOCK_SEPARATOR.join(render_file_block(f, include_md5=True) for f in files)
        return ToolResponse(
            text=BLOCK_SEPARATOR.join(
                [
                    header,
                    "⚠️ **Note**: The dedicated files listing is currently unavailable. "
                    f"Extracted {len(files)} files from study metadata.{total_size_line(files)}",
                    body,
                    "**Data Source:** Extracted from study section metadata via "
                    "`get_study_details`",
                ]
            )
        )

    @staticmethod
    def _files_unavailable(accno: str, problem: str, reason: str) -> str:
        return BLOCK_SEPARATOR.join(
            [
                f"📁 **Files Unavailable for {canonicalize(accno)}**",
                f"⚠️ The dedicated files listing is currently unavailable, and {problem}.",
                f"Reason: {reason}",
                "**Alternative Approaches:**\n"
                f"• Visit the study page directly: {BIOSTUDIES_STUDY_PAGE.format(accno=accno)}\n"
                "• Use `get_study_details` to view study metadata directly",
            ]
        )
