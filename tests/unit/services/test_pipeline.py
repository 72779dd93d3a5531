"""Unit tests for ToolPipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.models import (
    ApiFailure,
    ApiSuccess,
    BatchResult,
    SearchResponse,
    Study,
    StudyValidation,
    ToolResponse,
)
from biostudies_mcp.services.fallback import FallbackProvider
from biostudies_mcp.services.pipeline import (
    ToolArgumentError,
    ToolPipeline,
    UnknownToolError,
    paging,
)

NOT_FOUND = ApiFailure(error="HTTP 404: Not Found", status=404)
SERVER_ERROR = ApiFailure(error="HTTP 500: Internal Server Error", status=500)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=BioStudiesClient)


@pytest.fixture
def fallback() -> MagicMock:
    provider = MagicMock(spec=FallbackProvider)
    provider.search_alternatives.return_value = ToolResponse(text="alternatives")
    provider.known_collections.return_value = ToolResponse(text="known collections")
    provider.files_from_study_metadata = AsyncMock(
        return_value=ToolResponse(text="files from metadata")
    )
    return provider


@pytest.fixture
def pipeline(client, fallback) -> ToolPipeline:
    return ToolPipeline(client, fallback)


# --- paging ---


@pytest.mark.parametrize(
    "args, expected",
    [
        ({}, (0, 20)),
        ({"page": 3, "size": 10}, (3, 10)),
        ({"size": 500}, (0, 100)),
        ({"page": -1, "size": 0}, (0, 20)),
        ({"page": "2", "size": "5"}, (0, 20)),
        ({"page": True, "size": True}, (0, 20)),
    ],
)
def test_paging(args, expected):
    assert paging(args) == expected


# --- dispatch ---


async def test_unknown_tool_raises(pipeline):
    with pytest.raises(UnknownToolError, match="Unknown tool: frobnicate"):
        await pipeline.call("frobnicate", {})


def test_tool_names(pipeline):
    assert len(pipeline.tool_names) == 12
    assert "get_study_details" in pipeline.tool_names


# --- search_studies ---


@pytest.mark.parametrize(
    "args",
    [{}, {"type": "Study"}, {"query": ""}, {"query": 5}, {"keywords": ["x"]}],
)
async def test_search_requires_query_collection_or_author(pipeline, client, args):
    with pytest.raises(ToolArgumentError, match="At least one search parameter"):
        await pipeline.call("search_studies", args)
    client.search_studies.assert_not_called()


async def test_search_rejects_bad_sort_order(pipeline, client):
    with pytest.raises(ToolArgumentError, match="sortOrder"):
        await pipeline.call("search_studies", {"query": "x", "sortOrder": "up"})
    client.search_studies.assert_not_called()


async def test_search_clamps_size_and_renders(pipeline, client, sample_search_response):
    client.search_studies = AsyncMock(
        return_value=ApiSuccess(data=SearchResponse.model_validate(sample_search_response))
    )
    response = await pipeline.call("search_studies", {"query": "liver", "size": 1000})

    params = client.search_studies.call_args.args[0]
    assert params.size == 100
    assert params.page == 0
    assert response.is_error is False
    assert response.text.startswith("Found 57 studies:")


async def test_search_not_found_uses_fallback(pipeline, client, fallback):
    client.search_studies = AsyncMock(return_value=NOT_FOUND)
    response = await pipeline.call("search_studies", {"collection": "empiar"})

    assert response.text == "alternatives"
    assert response.is_error is False
    assert fallback.search_alternatives.call_args.args[0].collection == "empiar"


async def test_search_other_failure_is_error(pipeline, client, fallback):
    client.search_studies = AsyncMock(return_value=SERVER_ERROR)
    response = await pipeline.call("search_studies", {"query": "x"})

    assert response.is_error is True
    assert response.text == "Error searching BioStudies: HTTP 500: Internal Server Error"
    fallback.search_alternatives.assert_not_called()


# --- per-study tools ---


@pytest.mark.parametrize("tool", ["get_study_details", "get_study_files", "get_study_links"])
@pytest.mark.parametrize("args", [{}, {"accno": ""}, {"accno": 42}, {"accno": "bogus"}])
async def test_accession_tools_reject_bad_accno(pipeline, client, tool, args):
    with pytest.raises(ToolArgumentError):
        await pipeline.call(tool, args)
    assert not client.method_calls


async def test_get_study_details_success(pipeline, client, sample_study):
    client.get_study_details = AsyncMock(
        return_value=ApiSuccess(data=Study.model_validate(sample_study))
    )
    response = await pipeline.call("get_study_details", {"accno": "S-BSST1234"})

    assert response.is_error is False
    assert response.text.startswith("**Study: S-BSST1234**")


@pytest.mark.parametrize(
    "failure",
    [
        NOT_FOUND,
        ApiFailure(error="Request timeout", status=408),
        ApiFailure(error="connection refused", status=0),
    ],
)
async def test_get_study_details_failure_is_error(pipeline, client, failure):
    client.get_study_details = AsyncMock(return_value=failure)
    response = await pipeline.call("get_study_details", {"accno": "S-BSST1"})

    assert response.is_error is True
    assert response.text == f"Error retrieving study S-BSST1: {failure.error}"


async def test_get_study_files_not_found_uses_metadata(pipeline, client, fallback):
    client.get_study_files = AsyncMock(return_value=NOT_FOUND)
    response = await pipeline.call("get_study_files", {"accno": "S-BSST1"})

    assert response.text == "files from metadata"
    fallback.files_from_study_metadata.assert_awaited_once_with("S-BSST1")


async def test_get_study_files_other_failure(pipeline, client, fallback):
    client.get_study_files = AsyncMock(return_value=SERVER_ERROR)
    response = await pipeline.call("get_study_files", {"accno": "S-BSST1"})

    assert response.is_error is True
    fallback.files_from_study_metadata.assert_not_called()


async def test_get_study_links_not_found_is_error(pipeline, client):
    client.get_study_links = AsyncMock(return_value=NOT_FOUND)
    response = await pipeline.call("get_study_links", {"accno": "S-BSST1"})

    assert response.is_error is True
    assert response.text.startswith("Error retrieving links for study S-BSST1")


# --- validation ---


async def test_validate_passes_malformed_input_through(pipeline, client):
    client.validate_study_accession = AsyncMock(
        return_value=ApiSuccess(data=StudyValidation(accno="bogus", is_valid=False))
    )
    response = await pipeline.call("validate_study_accession", {"accno": "bogus"})

    assert response.is_error is False
    assert response.text.startswith("❌ Invalid accession number format")


async def test_validate_requires_string(pipeline):
    with pytest.raises(ToolArgumentError):
        await pipeline.call("validate_study_accession", {"accno": None})


# --- batch ---


@pytest.mark.parametrize("accessions", [None, "S-BSST1", ["S-BSST1", 2]])
async def test_batch_requires_list_of_strings(pipeline, client, accessions):
    with pytest.raises(ToolArgumentError):
        await pipeline.call("batch_get_studies", {"accessions": accessions})
    client.batch_get_studies.assert_not_called()


@pytest.mark.parametrize(
    "accessions, expected",
    [
        ([], "No accession numbers provided"),
        ([f"S-BSST{i}" for i in range(51)], "Maximum 50 studies can be processed at once"),
    ],
)
async def test_batch_bounds_are_advisory(pipeline, client, accessions, expected):
    response = await pipeline.call("batch_get_studies", {"accessions": accessions})

    assert response.text == expected
    assert response.is_error is False
    client.batch_get_studies.assert_not_called()


async def test_batch_renders_result(pipeline, client):
    client.batch_get_studies = AsyncMock(
        return_value=ApiSuccess(data=BatchResult(total=1, successful=["S-BSST1"]))
    )
    response = await pipeline.call("batch_get_studies", {"accessions": ["S-BSST1"]})

    assert "1/1 studies retrieved successfully" in response.text


# --- collections ---


async def test_list_collections_not_found_uses_known(pipeline, client):
    client.get_collections = AsyncMock(return_value=NOT_FOUND)
    response = await pipeline.call("list_collections", {})

    assert response.text == "known collections"
    assert response.is_error is False


async def test_get_collection_studies_requires_collection(pipeline):
    with pytest.raises(ToolArgumentError):
        await pipeline.call("get_collection_studies", {})


async def test_get_collection_studies_pages(pipeline, client):
    client.get_collection_studies = AsyncMock(return_value=ApiSuccess(data=SearchResponse()))
    response = await pipeline.call(
        "get_collection_studies", {"collection": "empiar", "page": 2, "size": 0}
    )

    client.get_collection_studies.assert_awaited_once_with("empiar", 2, 20)
    assert response.text == "No studies found in collection: empiar"


async def test_get_collection_studies_not_found_uses_search_alternatives(
    pipeline, client, fallback
):
    client.get_collection_studies = AsyncMock(return_value=NOT_FOUND)
    response = await pipeline.call("get_collection_studies", {"collection": "empiar"})

    assert response.text == "alternatives"
    assert fallback.search_alternatives.call_args.args[0].collection == "empiar"


# --- files, auth, info ---


async def test_search_files_requires_filter(pipeline):
    with pytest.raises(ToolArgumentError, match="accno, name, or type"):
        await pipeline.call("search_files", {"path": "raw/"})


async def test_authenticate_requires_both_credentials(pipeline, client):
    with pytest.raises(ToolArgumentError):
        await pipeline.call("authenticate", {"login": "ada"})
    client.authenticate.assert_not_called()


async def test_authenticate_failure_is_error(pipeline, client):
    client.authenticate = AsyncMock(
        return_value=ApiFailure(error="Invalid credentials", status=401)
    )
    response = await pipeline.call("authenticate", {"login": "ada", "password": "x"})

    assert response.is_error is True
    assert response.text == "Authentication failed: Invalid credentials"


async def test_get_api_status(pipeline, client):
    client.get_api_status = AsyncMock(return_value=ApiSuccess(data={"status": "UP"}))
    response = await pipeline.call("get_api_status")

    assert "status: UP" in response.text
