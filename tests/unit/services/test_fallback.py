"""Unit tests for FallbackProvider."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.models import ApiFailure, ApiSuccess, SearchParams, Study
from biostudies_mcp.services.fallback import (
    FallbackProvider,
    collection_suggestions,
    extract_section_files,
)


def _provider(details_result=None, side_effect=None) -> FallbackProvider:
    client = MagicMock(spec=BioStudiesClient)
    client.get_study_details = AsyncMock(return_value=details_result, side_effect=side_effect)
    return FallbackProvider(client)


# --- collection_suggestions ---


def test_collection_suggestions_known_key_is_case_insensitive():
    suggestions = collection_suggestions("ArrayExpress")

    assert len(suggestions) == 5
    assert all(s.startswith("E-MTAB-") for s in suggestions)


def test_collection_suggestions_unknown_key():
    assert collection_suggestions("no-such-collection") == []


# --- search_alternatives ---


def test_search_alternatives_collection_block():
    response = _provider().search_alternatives(SearchParams(collection="empiar"))

    assert response.is_error is False
    assert '**Collection-Based Discovery for "empiar":**' in response.text
    assert "  • Try accession: EMPIAR-10001" in response.text
    assert "get_study_details" in response.text


def test_search_alternatives_unknown_collection_generic_advice():
    response = _provider().search_alternatives(SearchParams(collection="mystery"))
    assert "known mystery accession patterns" in response.text


def test_search_alternatives_query_and_author_blocks():
    response = _provider().search_alternatives(SearchParams(query="liver", author="Ng"))

    assert '**Alternative Search Strategies for "liver":**' in response.text
    assert '**Finding Studies by "Ng":**' in response.text
    assert "Collection-Based Discovery" not in response.text


def test_search_alternatives_never_mentions_upstream_failure():
    text = _provider().search_alternatives(SearchParams(query="x", collection="bioimages")).text
    assert "404" not in text
    assert "error" not in text.lower()


def test_known_collections():
    response = _provider().known_collections()

    assert response.is_error is False
    assert "📚 **Known BioStudies Collections**" in response.text
    for key in ("arrayexpress", "bioimages", "empiar", "biostudies"):
        assert f"• **{key}**:" in response.text
    assert "404" not in response.text
    assert "error" not in response.text.lower()


# --- files_from_study_metadata ---


def test_extract_section_files_walks_one_level(sample_study):
    files = extract_section_files(Study.model_validate(sample_study))
    assert [f.display_name for f in files] == ["counts.h5ad", "raw_1.fastq.gz", "protocol.pdf"]


def test_extract_section_files_without_section():
    assert extract_section_files(Study(accno="S-BSST1")) == []


async def test_files_from_study_metadata_lists_files(sample_study):
    provider = _provider(ApiSuccess(data=Study.model_validate(sample_study)))
    response = await provider.files_from_study_metadata("s-bsst1234")

    assert response.is_error is False
    assert "📁 **Files for S-BSST1234 (via metadata extraction)**" in response.text
    assert "Extracted 3 files from study metadata." in response.text
    assert "  MD5: abc123" in response.text
    provider.client.get_study_details.assert_awaited_once_with("s-bsst1234")


async def test_files_from_study_metadata_no_files():
    provider = _provider(ApiSuccess(data=Study(accno="S-BSST1")))
    response = await provider.files_from_study_metadata("S-BSST1")

    assert "No files found in the study metadata" in response.text
    assert "https://www.ebi.ac.uk/biostudies/studies/S-BSST1" in response.text
    assert response.is_error is False
    assert "404" not in response.text
    assert "error" not in response.text.lower()


async def test_files_from_study_metadata_details_failure():
    provider = _provider(ApiFailure(error="Request timeout", status=408))
    response = await provider.files_from_study_metadata("S-BSST1")

    assert response.is_error is False
    assert "📁 **Files Unavailable for S-BSST1**" in response.text
    assert "Reason: Request timeout" in response.text


@pytest.mark.parametrize("exc", [RuntimeError("kaboom"), KeyError("section")])
async def test_files_from_study_metadata_unexpected_exception(exc):
    provider = _provider(side_effect=exc)
    response = await provider.files_from_study_metadata("S-BSST1")

    assert response.is_error is False
    assert "Files Unavailable" in response.text
    assert "Reason:" in response.text
