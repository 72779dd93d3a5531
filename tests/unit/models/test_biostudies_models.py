"""Unit tests for BioStudies pydantic models."""

import pytest
from pydantic import ValidationError

from biostudies_mcp.models import (
    Attribute,
    BatchFailure,
    BatchResult,
    FileInfo,
    Link,
    LinkGroup,
    SearchParams,
    SearchResponse,
    Section,
    Study,
)
from biostudies_mcp.models.model_biostudies import normalize_links


# --- Study ---


def test_study_parses_camel_case_keys(sample_study):
    study = Study.model_validate(sample_study)

    assert study.accno == "S-BSST1234"
    assert study.release_date == "2023-05-01"
    assert study.modify_date == "2023-06-12"
    assert study.is_public is True
    assert study.authors[0].orcid == "0000-0001-2345-6789"


def test_study_null_fields_fall_back_to_defaults():
    study = Study.model_validate(
        {"accno": "S-BSST1", "title": None, "authors": None, "attributes": None}
    )

    assert study.title == ""
    assert study.authors == []
    assert study.attributes == []
    assert study.section is None


def test_study_ignores_unknown_keys():
    study = Study.model_validate({"accno": "S-BSST1", "somethingNew": {"a": 1}})
    assert study.accno == "S-BSST1"


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"title": "Direct title"}, "Direct title"),
        ({"attributes": [{"name": "Title", "value": "From attribute"}]}, "From attribute"),
        ({}, "Title not available"),
    ],
)
def test_study_display_title(payload, expected):
    assert Study.model_validate(payload).display_title == expected


def test_attribute_value_is_stringified():
    assert Attribute.model_validate({"name": "Count", "value": 42}).value == "42"
    assert Attribute.model_validate({"name": "Empty", "value": None}).value == ""


# --- Links ---


def test_normalize_links_resolves_flat_and_nested_shapes():
    entries = normalize_links(
        [
            {"url": "https://a.example"},
            [{"url": "https://b.example"}, {"url": "https://c.example"}],
            "stray string",
            7,
        ]
    )

    assert len(entries) == 2
    assert isinstance(entries[0], Link)
    assert entries[0].url == "https://a.example"
    assert isinstance(entries[1], LinkGroup)
    assert [link.url for link in entries[1].links] == [
        "https://b.example",
        "https://c.example",
    ]


def test_normalize_links_empty_input():
    assert normalize_links(None) == []
    assert normalize_links([]) == []


def test_section_links_are_typed_at_parse_time(sample_study):
    section = Study.model_validate(sample_study).section

    assert isinstance(section.links[0], Link)
    assert isinstance(section.links[1], LinkGroup)
    assert section.links[1].links[0].attributes[0].value == "GEO"


# --- Section tables ---


def test_section_flattens_nested_files_and_subsections(sample_study):
    section = Study.model_validate(sample_study).section

    assert [f.display_name for f in section.files] == ["counts.h5ad", "raw_1.fastq.gz"]
    assert [s.type for s in section.subsections] == ["Protocols", "Sample", "Sample"]
    assert section.subsections[0].files[0].md5 == "abc123"


def test_section_is_recursive():
    section = Section.model_validate(
        {"type": "Study", "subsections": [{"type": "A", "subsections": [{"type": "B"}]}]}
    )
    assert section.subsections[0].subsections[0].type == "B"


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"name": "a.txt", "path": "dir/a.txt"}, "a.txt"),
        ({"path": "dir/a.txt"}, "dir/a.txt"),
        ({}, "Unknown filename"),
    ],
)
def test_file_display_name(payload, expected):
    assert FileInfo.model_validate(payload).display_name == expected


# --- Search ---


def test_search_response_aliases(sample_search_response):
    response = SearchResponse.model_validate(sample_search_response)

    assert response.total_hits == 57
    assert len(response.hits) == 2
    assert response.hits[0].release_date == "2020-01-01"


def test_search_params_dump_by_alias():
    params = SearchParams(
        query="liver", sort_by="releaseDate", sort_order="desc", release_date_from="2020-01-01"
    )
    dumped = params.model_dump(by_alias=True, exclude_none=True)

    assert dumped["sortBy"] == "releaseDate"
    assert dumped["sortOrder"] == "desc"
    assert dumped["releaseDateFrom"] == "2020-01-01"
    assert "collection" not in dumped


def test_search_params_rejects_bad_sort_order():
    with pytest.raises(ValidationError):
        SearchParams(sort_order="sideways")


# --- Batch ---


def test_batch_result_counts():
    result = BatchResult(
        total=3,
        successful=["S-BSST1", "S-BSST3"],
        failed=[BatchFailure(accno="S-BSST2", error="HTTP 404")],
    )
    assert result.success_count == 2
    assert result.failure_count == 1


def test_batch_result_rejects_count_mismatch():
    with pytest.raises(ValidationError, match="count mismatch"):
        BatchResult(total=2, successful=["S-BSST1"])
