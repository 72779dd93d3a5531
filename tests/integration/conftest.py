"""Shared fixtures for integration tests."""

import pytest

from biostudies_mcp.config import get_settings
from biostudies_mcp.data_sources.base_client import ClientConfig
from biostudies_mcp.data_sources.biostudies import BioStudiesClient
from biostudies_mcp.services.pipeline import ToolPipeline


@pytest.fixture
async def biostudies_client():
    """Create and tear down a BioStudiesClient against the configured API."""
    c = BioStudiesClient(ClientConfig.from_settings(get_settings()))
    yield c
    await c.close()


@pytest.fixture
async def pipeline(biostudies_client):
    p = ToolPipeline(biostudies_client)
    yield p
    await p.close()
