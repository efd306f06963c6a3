"""Base client for the HTTP services the ingest flow depends on.

The bag validator and the vault catalog are internal JSON services. They
can be briefly unreachable while they restart, so connection failures,
timeouts and gateway errors are retried; any other error status is
reported at once.
"""

import logging
import threading
from time import sleep
from typing import TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import (
    APIError,
    ClientError,
    ConnectionError,
    NotFoundError,
    ResponseValidationError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Answers of a service that is restarting behind a proxy
UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


class Client:
    """Base class for the service clients.

    A single instance is shared by every worker of the ingest area, so the
    underlying httpx.Client is created at most once, under a lock.

    Config keys:
        base_url (required): Base URL of the service
        timeout: Request timeout in seconds (default: 30)
        retry_attempts: Attempts for a request that fails transiently (default: 3)
        retry_delay: Seconds to wait between attempts (default: 1)
        headers: Extra headers sent with every request
    """

    def __init__(self, config: dict, http_client: httpx.Client | None = None):
        if "base_url" not in config:
            raise ValueError("config must include 'base_url'")

        self._config = config
        self._client: httpx.Client | None = http_client
        self._owns_client = http_client is None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.base_url}')"

    @property
    def base_url(self) -> str:
        return str(self._config["base_url"])

    @property
    def timeout(self) -> float:
        return float(self._config.get("timeout", 30))

    @property
    def retry_attempts(self) -> int:
        return max(1, int(self._config.get("retry_attempts", 3)))

    @property
    def retry_delay(self) -> float:
        return float(self._config.get("retry_delay", 1))

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._config.get("headers", {}))

    @property
    def client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    headers={"Accept": "application/json", **self.headers},
                )
            return self._client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        with self._lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None

    def ping(self) -> bool:
        """Return True if the service answers on its root path."""
        try:
            self._send("GET", "/")
        except ClientError as e:
            logger.warning(f"{self!r} is not healthy: {e}")
            return False
        return True

    def get_model(
        self,
        path: str,
        model: type[ModelT],
        missing_ok: bool = False,
    ) -> ModelT | None:
        """GET a JSON document and parse it into *model*.

        Returns None for a 404 when *missing_ok* is set.

        Raises:
            NotFoundError: On a 404 unless missing_ok is set
            ResponseValidationError: If the body does not fit the model
        """
        try:
            response = self._send("GET", path)
        except NotFoundError:
            if missing_ok:
                return None
            raise
        return self._parse(response, model)

    def post_model(self, path: str, body: BaseModel, model: type[ModelT]) -> ModelT:
        """POST *body* as camelCase JSON and parse the answer into *model*."""
        response = self._send(
            "POST",
            path,
            json=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return self._parse(response, model)

    def _parse(self, response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except PydanticValidationError as e:
            raise ResponseValidationError(
                f"{self.__class__.__name__}: response from {response.url} is not a valid {model.__name__}",
                errors=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()],
            ) from e
        except ValueError as e:
            raise ResponseValidationError(
                f"{self.__class__.__name__}: response from {response.url} is not JSON",
                errors=[str(e)],
            ) from e

    def _check_status(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {response.url}")
        raise APIError(
            f"{self.__class__.__name__} got status {response.status_code} from {response.url}",
            status_code=response.status_code,
            body=response.text,
        )

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, retrying while the service is unavailable.

        Raises:
            ConnectionError: If every attempt failed to connect or timed out
            APIError: For an error status, after retries for gateway errors
        """
        last_error: Exception | None = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                response = self.client.request(method, path, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = e
                logger.warning(
                    f"{method} {path} on {self!r} failed "
                    f"(attempt {attempt}/{self.retry_attempts}): {e}"
                )
            else:
                if response.status_code not in UNAVAILABLE_STATUSES or attempt == self.retry_attempts:
                    return self._check_status(response)
                logger.warning(
                    f"{method} {path} on {self!r} answered {response.status_code} "
                    f"(attempt {attempt}/{self.retry_attempts})"
                )

            if attempt < self.retry_attempts:
                sleep(self.retry_delay)

        raise ConnectionError(
            f"Connection to {self.base_url} failed after {self.retry_attempts} attempts"
        ) from last_error
