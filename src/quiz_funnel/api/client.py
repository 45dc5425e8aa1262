"""
Module: api.client

Purpose:
    HTTP client for the dashboard API. Serves as both the Catalog Provider
    (subjects, feature flags) and the Bundle Resolver (bundles, search).
    Payloads are validated before they become models; transport failures
    and error responses surface as ApiError.

Key Classes:
    - ApiClient: requests-based client
    - ApiError: Error response or transport failure

Dependencies:
    - requests: HTTP transport
    - quiz_funnel.core.schemas: Payload validation

Used By:
    - quiz_funnel.funnel.controller: Funnel.from_config()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from quiz_funnel.core.models import Bundle, FeatureFlags, Quiz, Subject
from quiz_funnel.core.schemas import (
    ValidationError,
    validate_bundle,
    validate_quiz,
    validate_settings,
    validate_subject,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """
    Error response (or no response) from the dashboard API.

    Attributes:
        status: HTTP status, None when the request never completed
        errors: Field errors sent by the server, if any
    """

    def __init__(self, message: str, status: Optional[int] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors or []


def _error_from_response(response: requests.Response) -> ApiError:
    """
    Build an ApiError from a non-2xx response.

    The server sends either JSON ``{"message": ..., "errors": [...]}`` or a
    plain-text message (sometimes JSON-quoted).
    """
    status = response.status_code
    message = ""
    errors: List[str] = []

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = str(body.get("message") or "")
        raw_errors = body.get("errors") or []
        if isinstance(raw_errors, list):
            errors = [str(e) for e in raw_errors]
    elif isinstance(body, str):
        message = body
    else:
        message = (response.text or "").strip().strip('"')

    if not message:
        message = "Unauthorized" if status == 401 else f"HTTP error! status: {status}"
    return ApiError(message, status=status, errors=errors)


class ApiClient:
    """
    Dashboard API client.

    Args:
        base_url: API root, e.g. "https://api.example.com/api"
        token: Bearer token for the Authorization header
        timeout: Per-request timeout in seconds (None = no timeout)
        session: requests.Session to reuse (one is created when None)
        strict: Also run full JSON Schema validation on payloads

    Example:
        >>> client = ApiClient("https://api.example.com/api", token="abc")
        >>> client.resolve_bundles("grade-8", "english", "mathematics", "model-papers", "1st-term")
        [...]  # doctest: +SKIP
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = 15.0,
        session: Optional[requests.Session] = None,
        strict: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.strict = strict

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> ApiClient:
        """Build a client from a FunnelConfig."""
        return cls(
            config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout,
            session=session,
            strict=config.strict_transitions,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        GET ``path`` and return the decoded JSON body.

        Raises:
            ApiError: On transport failure, non-2xx status or a non-JSON body
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"GET {path} failed: {e}")
            raise ApiError(f"Network error: {e}") from e

        if not response.ok:
            error = _error_from_response(response)
            logger.warning(f"GET {path} returned {response.status_code}: {error.message}")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {path}", status=response.status_code) from e

    @staticmethod
    def _expect_list(data: Any, path: str) -> List[Any]:
        if not isinstance(data, list):
            raise ValidationError(f"Expected a list from {path}, got {type(data).__name__}", path=path)
        return data

    @staticmethod
    def _build(parser: Callable[[Any], T], entry: Any, path: str) -> T:
        """Run a model parser, reporting bad field values as ValidationError."""
        try:
            return parser(entry)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid field value at {path}: {e}", path=path) from e

    # ─────────────────────────────────────────────────────────────────────────
    # Catalog Provider
    # ─────────────────────────────────────────────────────────────────────────

    def get_subjects(self) -> List[Subject]:
        """
        Every catalog subject (inactive ones included).

        Malformed entries are skipped with a warning so a single bad row
        does not take the whole catalog down.
        """
        data = self._expect_list(self._get("/subject"), "/subject")
        return self._parse_subjects(data)

    def get_subjects_by_category(self, band: str) -> List[Subject]:
        """Subjects of one catalog band (e.g. "Grade 12-13")."""
        path = f"/subject/category/{requests.utils.quote(band)}"
        data = self._expect_list(self._get(path), path)
        return self._parse_subjects(data)

    def _parse_subjects(self, data: List[Any]) -> List[Subject]:
        subjects = []
        for i, entry in enumerate(data):
            try:
                validate_subject(entry, strict=self.strict, path=f"[{i}]")
                subjects.append(self._build(Subject.from_dict, entry, f"[{i}]"))
            except ValidationError as e:
                logger.warning(f"Skipping invalid subject at {e.path or i}: {e}")
        logger.debug(f"Parsed {len(subjects)}/{len(data)} subjects")
        return subjects

    def get_feature_flags(self) -> FeatureFlags:
        """
        Admin feature toggles from ``/settings``.

        Raises:
            ApiError: Transport or HTTP failure
            ValidationError: Malformed payload
        """
        data = self._get("/settings")
        validate_settings(data, strict=self.strict)
        return FeatureFlags.from_dict(data)

    # ─────────────────────────────────────────────────────────────────────────
    # Bundle Resolver
    # ─────────────────────────────────────────────────────────────────────────

    def resolve_bundles(
        self,
        grade: str,
        medium: str,
        subject: str,
        paper_type: Optional[str],
        term: Optional[str] = None,
    ) -> List[Bundle]:
        """
        Bundles matching the selection.

        ``type`` is omitted when ``paper_type`` is None (grade-path
        discovery) and ``term`` when it is empty.

        Raises:
            ApiError: Transport or HTTP failure
            ValidationError: Malformed payload
        """
        params = {"grade": grade, "medium": medium, "subject": subject}
        if paper_type:
            params["type"] = paper_type
        if term:
            params["term"] = term

        data = self._expect_list(self._get("/quiz/bundles", params), "/quiz/bundles")
        bundles = []
        for i, entry in enumerate(data):
            validate_bundle(entry, strict=self.strict, path=f"[{i}]")
            bundles.append(self._build(Bundle.from_dict, entry, f"[{i}]"))
        logger.info(f"Resolved {len(bundles)} bundle(s) for {params}")
        return bundles

    def search(self, query: str) -> List[Quiz]:
        """
        Free-text quiz search across the whole catalog.

        Raises:
            ApiError: Transport or HTTP failure
            ValidationError: Malformed payload
        """
        data = self._expect_list(self._get("/quiz/search", {"query": query}), "/quiz/search")
        quizzes = []
        for i, entry in enumerate(data):
            validate_quiz(entry, strict=self.strict, path=f"[{i}]")
            quizzes.append(self._build(Quiz.from_dict, entry, f"[{i}]"))
        logger.info(f"Search {query!r} returned {len(quizzes)} quiz(zes)")
        return quizzes

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
