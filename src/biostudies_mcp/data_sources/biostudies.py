"""
EBI BioStudies API v1 client.

One method per upstream capability:
  search_studies / get_collection_studies  GET /studies
  get_study_details                        GET /studies/{accno}
  get_study_files                          GET /studies/{accno}/files
  get_study_links                          GET /studies/{accno}/links
  get_collections                          GET /collections
  search_files                             GET /files
  authenticate                             POST /auth/login
  get_statistics / get_api_status          GET /statistics, GET /status

Plus two composites that never hit a dedicated endpoint:
validate_study_accession and batch_get_studies.
"""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from biostudies_mcp.constants import INVALID_REQUEST_STATUS, MAX_BATCH_SIZE
from biostudies_mcp.data_sources.base_client import BaseClient, RequestContext
from biostudies_mcp.helpers.accessions import classify, is_valid_accession
from biostudies_mcp.models.model_biostudies import (
    AuthToken,
    Collection,
    FileInfo,
    FileSearchParams,
    FileSearchResponse,
    SearchParams,
    SearchResponse,
    Statistics,
    Study,
    StudyValidation,
    normalize_links,
)
from biostudies_mcp.models.model_results import (
    ApiFailure,
    ApiResult,
    ApiSuccess,
    BatchFailure,
    BatchResult,
)

logger = logging.getLogger("biostudies_mcp.data_sources.biostudies")


class BioStudiesClient(BaseClient):
    """Client for the EBI BioStudies REST API."""

    @property
    def _source_name(self) -> str:
        return "biostudies"

    def _ctx(self, method: str, **params: Any) -> RequestContext:
        return RequestContext(source=self._source_name, method=method, params=params)

    # -- Authentication -------------------------------------------------------

    async def authenticate(self, login: str, password: str) -> ApiResult:
        """POST credentials; on success the token is used by every later request."""
        result = await self._rest_post(
            "/auth/login",
            {"login": login, "password": password},
            context=self._ctx("authenticate", login=login),
        )
        parsed = self._parse(result, AuthToken, "/auth/login")
        if not parsed.ok:
            return parsed

        token: AuthToken = parsed.data
        if not token.token:
            return ApiFailure(
                error="Login response did not include a token", status=parsed.status
            )
        self.auth.set_token(token.token, expires=token.expires, user=token.user)
        logger.info("Authenticated as %s", token.user or login)
        return parsed

    def clear_authentication(self) -> None:
        self.auth.clear()

    def set_auth_token(self, token: str) -> None:
        self.auth.set_token(token)

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    # -- Studies --------------------------------------------------------------

    async def search_studies(self, params: SearchParams) -> ApiResult:
        """Search studies. Returns ApiSuccess[SearchResponse] on 2xx."""
        query = self._query_pairs(params)
        result = await self._rest_get(
            "/studies", query, context=self._ctx("search_studies", **dict(query))
        )
        return self._parse(result, SearchResponse, "/studies")

    async def get_collection_studies(
        self, collection: str, page: int = 0, size: int = 20
    ) -> ApiResult:
        return await self.search_studies(
            SearchParams(collection=collection, page=page, size=size)
        )

    async def get_study_details(self, accno: str) -> ApiResult:
        """Fetch one study. Malformed accessions fail with 400 without a request."""
        if not is_valid_accession(accno):
            return self._invalid_accession(accno)
        result = await self._rest_get(
            f"/studies/{accno}", context=self._ctx("get_study_details", accno=accno)
        )
        return self._parse(result, Study, f"/studies/{accno}")

    async def get_study_files(self, accno: str) -> ApiResult:
        if not is_valid_accession(accno):
            return self._invalid_accession(accno)
        path = f"/studies/{accno}/files"
        result = await self._rest_get(
            path, context=self._ctx("get_study_files", accno=accno)
        )
        return self._parse(result, FileInfo, path, many=True)

    async def get_study_links(self, accno: str) -> ApiResult:
        """Fetch external links; nested link arrays become LinkGroup entries."""
        if not is_valid_accession(accno):
            return self._invalid_accession(accno)
        path = f"/studies/{accno}/links"
        result = await self._rest_get(
            path, context=self._ctx("get_study_links", accno=accno)
        )
        if not result.ok:
            return result
        if not isinstance(result.data, list):
            return self._unexpected_shape(path, result.status)
        try:
            links = normalize_links(result.data)
        except ValidationError as e:
            return self._unexpected_shape(path, result.status, e)
        return ApiSuccess(data=links, status=result.status)

    async def validate_study_accession(self, accno: str) -> ApiResult:
        """
        Check format, then existence.

        Always succeeds: a lookup failure means ``exists=False``, not an
        error. Malformed input is reported without any request.
        """
        fmt = classify(accno)
        validation = StudyValidation(
            accno=accno, is_valid=fmt.is_valid, family=fmt.family
        )
        if not fmt.is_valid:
            return ApiSuccess(data=validation)

        details = await self.get_study_details(accno)
        if details.ok and details.data is not None:
            study: Study = details.data
            validation.exists = True
            validation.is_public = study.is_public
            validation.collection = study.collection
            validation.title = study.display_title
        return ApiSuccess(data=validation)

    async def batch_get_studies(self, accessions: list[str]) -> ApiResult:
        """
        Fetch up to MAX_BATCH_SIZE studies concurrently.

        Each member settles independently; the result lists keep the input
        order of ``accessions`` whatever the completion order. Out-of-range
        batch sizes are rejected with 400 before any request is made.
        """
        if not accessions:
            return ApiFailure(
                error="No accession numbers provided", status=INVALID_REQUEST_STATUS
            )
        if len(accessions) > MAX_BATCH_SIZE:
            return ApiFailure(
                error=f"Maximum {MAX_BATCH_SIZE} accessions can be processed at once",
                status=INVALID_REQUEST_STATUS,
            )

        logger.info("Batch fetch of %d studies", len(accessions))
        outcomes = await asyncio.gather(
            *(self.get_study_details(accno) for accno in accessions),
            return_exceptions=True,
        )

        successful: list[str] = []
        failed: list[BatchFailure] = []
        for accno, outcome in zip(accessions, outcomes):
            if isinstance(outcome, Exception):
                failed.append(
                    BatchFailure(accno=accno, error=str(outcome) or type(outcome).__name__)
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome.ok:
                successful.append(accno)
            else:
                failed.append(BatchFailure(accno=accno, error=outcome.error))

        return ApiSuccess(
            data=BatchResult(total=len(accessions), successful=successful, failed=failed)
        )

    # -- Collections and files ------------------------------------------------

    async def get_collections(self) -> ApiResult:
        result = await self._rest_get("/collections", context=self._ctx("get_collections"))
        return self._parse(result, Collection, "/collections", many=True)

    async def search_files(self, params: FileSearchParams) -> ApiResult:
        query = self._query_pairs(params)
        result = await self._rest_get(
            "/files", query, context=self._ctx("search_files", **dict(query))
        )
        return self._parse(result, FileSearchResponse, "/files")

    # -- Service info ---------------------------------------------------------

    async def get_statistics(self) -> ApiResult:
        result = await self._rest_get("/statistics", context=self._ctx("get_statistics"))
        return self._parse(result, Statistics, "/statistics")

    async def get_api_status(self) -> ApiResult:
        """Raw /status payload: parsed JSON or plain text, passed through as-is."""
        return await self._rest_get("/status", context=self._ctx("get_api_status"))

    # -- Private helpers ------------------------------------------------------

    @staticmethod
    def _query_pairs(params: BaseModel) -> list[tuple[str, str]]:
        """Query string pairs by API name; unset and empty values are never sent."""
        pairs: list[tuple[str, str]] = []
        for key, value in params.model_dump(by_alias=True, exclude_none=True).items():
            if isinstance(value, list):
                pairs.extend((key, str(item)) for item in value if item not in (None, ""))
            elif value != "":
                pairs.append((key, str(value)))
        return pairs

    def _parse(
        self,
        result: ApiResult,
        model: type[BaseModel],
        endpoint: str,
        *,
        many: bool = False,
    ) -> ApiResult:
        """Validate a successful payload into model(s); failures pass through."""
        if not result.ok:
            return result
        try:
            if many:
                if not isinstance(result.data, list):
                    return self._unexpected_shape(endpoint, result.status)
                data: Any = [model.model_validate(item) for item in result.data]
            else:
                data = model.model_validate(result.data)
        except ValidationError as e:
            return self._unexpected_shape(endpoint, result.status, e)
        return ApiSuccess(data=data, status=result.status)

    def _unexpected_shape(
        self, endpoint: str, status: int, error: ValidationError | None = None
    ) -> ApiFailure:
        if error is not None:
            logger.warning(
                "Unexpected response shape from %s: %d validation errors",
                endpoint,
                error.error_count(),
            )
        return ApiFailure(
            error=f"Unexpected response from BioStudies {endpoint}", status=status
        )

    @staticmethod
    def _invalid_accession(accno: Any) -> ApiFailure:
        return ApiFailure(
            error=f"Invalid accession number format: {accno}",
            status=INVALID_REQUEST_STATUS,
        )
