"""
Sanity Content Store HTTP API Client

A small client for the parts of the Sanity HTTP API used by the travel site
tooling: GROQ queries, image asset uploads and document mutations.

Usage:
    ```python
    with SanityAPI(project_id, dataset, token=token) as api:
        destinations = api.query('*[_type == "destination"]{_id, name}')
        asset = api.assets.upload_image(data, "kerala.webp", "image/webp")
        api.documents.patch(destinations[0]["_id"], set={
            "mainImage": image_reference(asset["_id"]),
        })
    ```
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from travelcms.core import config
from travelcms.utils.logger import log_api_request, log_api_response

logger = logging.getLogger(__name__)

# GROQ queries longer than this are sent as POST bodies instead of URL params
MAX_GET_QUERY_LENGTH = 8000


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SanityAPIError(Exception):
    """Base exception for all content store API errors."""
    pass


class SanityAuthenticationError(SanityAPIError):
    """Raised when the token is missing, invalid or expired."""
    pass


class SanityPermissionError(SanityAPIError):
    """Raised when the token lacks the rights for an operation."""
    pass


class SanityNotFoundError(SanityAPIError):
    """Raised when a project, dataset or endpoint does not exist (404)."""
    pass


class SanityRateLimitError(SanityAPIError):
    """Raised when the API rate limit is exceeded."""
    pass


class SanityNetworkError(SanityAPIError):
    """Raised when the server cannot be reached or the request times out."""
    pass


STATUS_ERRORS = {
    401: (SanityAuthenticationError, "Authentication required"),
    403: (SanityPermissionError, "Permission denied"),
    404: (SanityNotFoundError, "Resource not found"),
    429: (SanityRateLimitError, "Rate limit exceeded"),
}


def image_reference(asset_id: str) -> Dict[str, Any]:
    """Build the value of an image field pointing at an uploaded asset."""
    return {
        "_type": "image",
        "asset": {
            "_type": "reference",
            "_ref": asset_id,
        },
    }


# ============================================================================
# MAIN API CLIENT
# ============================================================================

class SanityAPI:
    """
    Content store API client.

    Reads work without a token (public datasets). Uploads and mutations
    require one and fail fast with :class:`SanityAuthenticationError` when
    it is missing.

    Attributes:
        assets: AssetsAPI - binary asset uploads
        documents: DocumentsAPI - document creates and patches
    """

    def __init__(
        self,
        project_id: str,
        dataset: str,
        token: Optional[str] = None,
        api_version: str = config.DEFAULT_API_VERSION,
        use_cdn: bool = False,
        timeout: int = config.NETWORK_TIMEOUT_SECONDS,
        rate_limit: float = config.DEFAULT_RATE_LIMIT_SECONDS
    ):
        """
        Args:
            project_id: Content store project identifier
            dataset: Dataset name
            token: Optional API token (Editor rights needed for writes)
            api_version: Dated API version, with or without the leading 'v'
            use_cdn: Read from the CDN host; only honoured without a token
            timeout: Request timeout in seconds
            rate_limit: Minimum seconds between API calls
        """
        if not project_id:
            raise ValueError("project_id is required")
        if not dataset:
            raise ValueError("dataset is required")

        self.project_id = project_id
        self.dataset = dataset
        self.token = token.strip() if token else None
        self.api_version = api_version.lstrip("v")
        self.timeout = timeout
        self.rate_limit = rate_limit

        host = config.API_CDN_HOST if use_cdn and not self.token else config.API_HOST
        self.base_url = f"https://{project_id}.{host}/v{self.api_version}"

        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "travelcms",
        })
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"

        self._last_request_time = 0.0
        self._request_count = 0

        self.assets = AssetsAPI(self)
        self.documents = DocumentsAPI(self)

        logger.debug(f"Initialized SanityAPI for {self.base_url} (dataset={dataset})")

    @classmethod
    def from_config(cls, cfg) -> "SanityAPI":
        """Create a client from a :class:`~travelcms.utils.config_manager.SanityConfig`."""
        return cls(
            project_id=cfg.project_id,
            dataset=cfg.dataset,
            token=cfg.token or None,
            api_version=cfg.api_version,
            use_cdn=cfg.use_cdn,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.session.close()

    # ------------------------------------------------------------------------
    # REQUEST HANDLING
    # ------------------------------------------------------------------------

    def require_token(self, operation: str):
        """Raise before sending anything when a write is attempted without a token."""
        if not self.token:
            raise SanityAuthenticationError(f"An API token is required to {operation}")

    def get_request_count(self) -> int:
        """Number of HTTP requests sent by this client."""
        return self._request_count

    def _enforce_rate_limit(self):
        if self.rate_limit > 0:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.rate_limit:
                time.sleep(self.rate_limit - elapsed)
        self._last_request_time = time.time()

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path below the versioned base URL (e.g. "data/query/production")
            params: URL query parameters
            json_body: JSON request body
            data: Raw request body (asset uploads)
            headers: Extra headers for this request

        Returns:
            Parsed JSON, or None for empty responses

        Raises:
            SanityAPIError: or one of its subclasses, by HTTP status
        """
        self._enforce_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs: Dict[str, Any] = {"timeout": self.timeout}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body
        if data is not None:
            kwargs["data"] = data
        if headers:
            kwargs["headers"] = headers

        log_api_request(logger, method, url, headers=headers, params=params,
                        data=json_body if json_body is not None else data)

        self._request_count += 1
        start_time = time.time()
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise SanityNetworkError(f"Request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise SanityNetworkError(f"Network error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise SanityAPIError(f"Request failed: {e}") from e
        elapsed = time.time() - start_time

        if response.status_code >= 400:
            self._raise_for_status(response, url)

        if response.status_code == 204 or not response.content:
            log_api_response(logger, response.status_code, elapsed_time=elapsed)
            return None

        try:
            result = response.json()
        except ValueError as e:
            raise SanityAPIError(f"Invalid JSON response from {url}: {e}") from e

        log_api_response(logger, response.status_code, result, elapsed)
        return result

    def _raise_for_status(self, response, url: str):
        detail = _error_detail(response)
        status = response.status_code
        logger.debug(f"Request to {url} failed with {status}: {detail}")

        error_cls, label = STATUS_ERRORS.get(status, (SanityAPIError, "API request failed"))
        raise error_cls(f"{label}: HTTP {status}: {detail}")

    # ------------------------------------------------------------------------
    # QUERIES
    # ------------------------------------------------------------------------

    def query(self, groq: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run a GROQ query against the dataset.

        Args:
            groq: The query text
            params: Query parameters, referenced as ``$name`` in the query

        Returns:
            The ``result`` member of the response (list, dict, scalar or None)
        """
        endpoint = f"data/query/{self.dataset}"
        params = params or {}

        if len(groq) > MAX_GET_QUERY_LENGTH:
            response = self._make_request(
                "POST", endpoint, json_body={"query": groq, "params": params}
            )
        else:
            url_params = {"query": groq}
            for name, value in params.items():
                url_params[f"${name}"] = json.dumps(value)
            response = self._make_request("GET", endpoint, params=url_params)

        if not isinstance(response, dict) or "result" not in response:
            raise SanityAPIError(f"Unexpected query response: {response!r}"[:300])
        return response["result"]


def _error_detail(response) -> str:
    """Pull the human-readable error out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return (response.text or response.reason or "").strip()[:300]

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("description") or error.get("type") or json.dumps(error)
        return body.get("message") or (str(error) if error else json.dumps(body))
    return str(body)[:300]


# ============================================================================
# SUB-API CLASSES
# ============================================================================

class BaseAPI:
    """Base class for sub-API implementations."""

    def __init__(self, client: SanityAPI):
        self.client = client

    def _request(self, *args, **kwargs):
        """Shortcut to client._make_request()"""
        return self.client._make_request(*args, **kwargs)


class AssetsAPI(BaseAPI):
    """Binary asset uploads."""

    def upload_image(self, data: bytes, filename: str, content_type: str) -> Dict[str, Any]:
        """
        Upload image bytes and return the created asset document.

        The store de-duplicates identical bytes, so uploading the same file
        twice returns the same asset ``_id``.

        Args:
            data: Raw image bytes
            filename: Original file name, kept as the asset's originalFilename
            content_type: MIME type of the bytes

        Returns:
            Asset document; its ``_id`` is the asset reference
        """
        self.client.require_token("upload assets")

        response = self._request(
            "POST",
            f"assets/images/{self.client.dataset}",
            params={"filename": filename},
            data=data,
            headers={"Content-Type": content_type},
        )

        document = response.get("document") if isinstance(response, dict) else None
        if not isinstance(document, dict) or not document.get("_id"):
            raise SanityAPIError(f"Upload of {filename} returned no asset document")
        return document


class DocumentsAPI(BaseAPI):
    """Document mutations."""

    def mutate(self, mutations: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Apply a list of mutations in one transaction.

        Returns:
            The mutation response (``transactionId`` and ``results``)
        """
        self.client.require_token("modify documents")

        response = self._request(
            "POST",
            f"data/mutate/{self.client.dataset}",
            params={"returnIds": "true", "visibility": "sync"},
            json_body={"mutations": mutations},
        )
        if not isinstance(response, dict):
            raise SanityAPIError(f"Unexpected mutation response: {response!r}"[:300])
        return response

    def create(self, document: Dict[str, Any]) -> str:
        """Create a document and return its ``_id``."""
        if not document.get("_type"):
            raise ValueError("document must have a _type")

        response = self.mutate([{"create": document}])
        return _first_result_id(response)

    def patch(self, doc_id: str, set: Optional[Dict[str, Any]] = None,
              unset: Optional[List[str]] = None) -> str:
        """
        Set and/or unset fields on an existing document.

        Args:
            doc_id: Document ``_id``
            set: Field path -> new value
            unset: Field paths to remove

        Returns:
            The patched document's ``_id``
        """
        if not set and not unset:
            raise ValueError("patch needs at least one of set or unset")

        operation: Dict[str, Any] = {"id": doc_id}
        if set:
            operation["set"] = set
        if unset:
            operation["unset"] = unset

        response = self.mutate([{"patch": operation}])
        return _first_result_id(response, default=doc_id)


def _first_result_id(response: Dict[str, Any], default: Optional[str] = None) -> str:
    results = response.get("results") or []
    if results and isinstance(results[0], dict) and results[0].get("id"):
        return results[0]["id"]
    if default is not None:
        return default
    raise SanityAPIError(f"Mutation returned no document id: {response!r}"[:300])
