"""
JSON-RPC client wrapper for the Xen Orchestra API.

Calls are plain JSON-RPC 2.0 POSTs over a pooled ``urllib3`` connection.
Transient transport failures are retried with ``tenacity``; JSON-RPC error
objects are mapped onto the orchestrator exception hierarchy and never
retried.
"""

import itertools
import json
import logging
from typing import Any, Dict, List, Optional

import urllib3
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError

from xolib.config import ClientConfig
from xolib.constants import (
    DEFAULT_RETRY_MAX_ATTEMPTS,
    LOGGER_NAME,
    METHOD_GET_ALL_OBJECTS,
    RPC_ENDPOINT_PATH,
    XO_ERROR_NO_SUCH_OBJECT,
)
from xolib.exceptions import NotFoundError, RPCError, TransientError

logger = logging.getLogger(LOGGER_NAME)

_REDACTED_PARAMS = ("password", "token")


def is_retryable_error(exception: BaseException) -> bool:
    """Check if exception is retryable."""
    if isinstance(exception, TransientError):
        return True
    if isinstance(exception, HTTPError):
        return True
    return False


def _should_retry(exception: BaseException) -> bool:
    """Custom retry condition using is_retryable_error."""
    if not isinstance(exception, Exception):
        return False
    return is_retryable_error(exception)


# Standard retry decorator for RPC calls
retry_rpc_call = retry(
    retry=retry_if_exception(_should_retry),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    stop=stop_after_attempt(DEFAULT_RETRY_MAX_ATTEMPTS),
    before_sleep=before_sleep_log(logger, logging.DEBUG),
    reraise=True,
)


def _redact(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: ("***" if key in _REDACTED_PARAMS else value) for key, value in params.items()}


class XOClient:
    """Synchronous JSON-RPC client for the remote virtualization API."""

    def __init__(self, config: ClientConfig, http: Optional[urllib3.PoolManager] = None) -> None:
        """
        Initialize the client.

        Args:
            config: Connection settings, validated here
            http: Pool manager to use instead of building one from ``config``
        """
        config.validate()
        self.config = config
        self.endpoint = config.url.rstrip("/") + RPC_ENDPOINT_PATH
        self._request_ids = itertools.count(1)

        if config.insecure:
            logger.warning("TLS certificate verification disabled for %s", config.url)

        if http is None:
            http = urllib3.PoolManager(
                cert_reqs="CERT_NONE" if config.insecure else "CERT_REQUIRED",
                timeout=urllib3.Timeout(total=config.request_timeout),
                retries=False,
            )
        self.http = http

        logger.info(
            "Initialized XO client for %s (timeout: %ss)",
            config.url,
            config.request_timeout,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.config.token:
            headers["Cookie"] = f"authenticationToken={self.config.token}"
        else:
            headers.update(urllib3.make_headers(basic_auth=f"{self.config.username}:{self.config.password}"))
        return headers

    def call(self, method: str, params: Optional[Dict[str, Any]] = None, retry: bool = True) -> Any:
        """Issue a JSON-RPC call and return its result.

        Args:
            method: Remote method name, e.g. ``backup.create``
            params: Method params
            retry: Retry transient failures with backoff. Waiter refreshes
                pass False; the waiter's retry budget governs them instead.

        Returns:
            The decoded ``result`` member of the response

        Raises:
            TransientError: Network failure, HTTP 429 or 5xx (after retries)
            NotFoundError: The remote reported that the object does not exist
            RPCError: The remote rejected the call
        """
        if retry:
            return self._call_with_retry(method, params)
        return self._call_once(method, params)

    @retry_rpc_call
    def _call_with_retry(self, method: str, params: Optional[Dict[str, Any]]) -> Any:
        return self._call_once(method, params)

    def _call_once(self, method: str, params: Optional[Dict[str, Any]]) -> Any:
        params = params or {}
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        logger.debug("Calling %s with params %s", method, _redact(params))

        try:
            response = self.http.request(
                "POST",
                self.endpoint,
                body=json.dumps(payload).encode("utf-8"),
                headers=self._headers(),
            )
        except HTTPError as e:
            raise TransientError(f"{method}: transport error: {e}") from e

        if response.status == 429 or 500 <= response.status < 600:
            raise TransientError(f"{method}: HTTP {response.status}")
        if response.status >= 400:
            raise RPCError(method, f"HTTP {response.status}")

        try:
            body = json.loads(response.data.decode("utf-8"))
        except ValueError as e:
            raise RPCError(method, f"invalid JSON response: {e}") from e

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            code = error.get("code")
            message = error.get("message", "unknown error")
            if code == XO_ERROR_NO_SUCH_OBJECT:
                raise NotFoundError(f"{method}: {message}")
            logger.error("%s rejected: code=%s message=%s", method, code, message)
            raise RPCError(method, message, code=code, data=error.get("data"))

        result = body.get("result") if isinstance(body, dict) else None
        logger.debug("%s returned %r", method, result)
        return result

    def send(self, request: Any) -> Any:
        """Issue a typed request built in ``xolib.commands``."""
        return self.call(request.METHOD, request.to_params())

    def get_all_objects(
        self,
        object_type: str,
        filters: Optional[Dict[str, Any]] = None,
        retry: bool = True,
    ) -> List[Dict[str, Any]]:
        """Fetch a snapshot of every remote object of ``object_type``.

        Args:
            object_type: Remote object type, e.g. ``backup``
            filters: Extra equality filters passed to the remote
            retry: Retry transient failures, see ``call``

        Returns:
            List of raw object dicts (possibly empty)
        """
        remote_filter: Dict[str, Any] = {"type": object_type}
        remote_filter.update(filters or {})
        result = self.call(METHOD_GET_ALL_OBJECTS, {"filter": remote_filter}, retry=retry)
        if isinstance(result, dict):
            return list(result.values())
        return list(result or [])
