"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def sample_study() -> dict:
    """Study payload as returned by GET /studies/{accno}."""
    return {
        "accno": "S-BSST1234",
        "title": "Single-cell atlas of the zebrafish retina",
        "description": "scRNA-seq of 40k retinal cells across development.",
        "releaseDate": "2023-05-01",
        "modifyDate": "2023-06-12",
        "collection": "BioStudies",
        "type": "Study",
        "isPublic": True,
        "views": 120,
        "downloads": None,
        "authors": [
            {"name": "Ada Ng", "affiliation": "EMBL-EBI", "orcid": "0000-0001-2345-6789"},
            {"name": "Sam Ortiz", "affiliation": None},
        ],
        "attributes": [
            {"name": "Title", "value": "Single-cell atlas of the zebrafish retina"},
            {"name": "Organism", "value": "Danio rerio"},
        ],
        "section": {
            "type": "Study",
            "attributes": [{"name": "Assay", "value": "scRNA-seq"}],
            "links": [
                {
                    "url": "https://www.ebi.ac.uk/ena/browser/view/PRJEB1234",
                    "attributes": [{"name": "Type", "value": "ENA"}],
                },
                [
                    {"url": "GSE100001", "attributes": [{"name": "Type", "value": "GEO"}]},
                    {"url": "GSE100002", "attributes": []},
                ],
            ],
            "files": [
                {"path": "counts.h5ad", "size": 1536, "type": "file"},
                [
                    {"name": "raw_1.fastq.gz", "path": "raw/raw_1.fastq.gz", "size": 1073741824},
                ],
            ],
            "subsections": [
                {
                    "type": "Protocols",
                    "attributes": [{"name": "Name", "value": "Dissociation"}],
                    "files": [{"path": "protocol.pdf", "size": 2048, "md5": "abc123"}],
                },
                [{"type": "Sample"}, {"type": "Sample"}],
            ],
        },
    }


@pytest.fixture
def sample_search_response() -> dict:
    """Search payload as returned by GET /studies."""
    return {
        "hits": [
            {
                "accno": "E-MTAB-1234",
                "title": "Liver transcriptome",
                "authors": ["A One", "B Two", "C Three", "D Four"],
                "releaseDate": "2020-01-01",
                "collection": "ArrayExpress",
                "type": "Study",
                "views": 10,
                "downloads": 2,
            },
            {"accno": "S-BSST42", "title": "Gut microbiome", "authors": []},
        ],
        "totalHits": 57,
        "page": 0,
        "size": 2,
    }
