# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Yandex Disk REST client.

This module provides the HTTP implementation of ``ResourceClient`` and the
``Session`` that carries its configuration (token, endpoint, timeouts and
retry policy).

Classes:
    Session: Connection settings and credential resolution.
    DiskClient: Client for the Yandex Disk REST API.
"""
import os
import json
import time
import logging
from typing import Any, Dict, Optional, Tuple

import httpx
import yaml

from .base import ResourceClient
from .exceptions import ConfigurationError, InternalError, NetworkError, RemoteAPIError
from .retry import retry
from .types import DiskInfo, Link, Resource, normalize_resource

logger = logging.getLogger("ydfs.client")

URL_BASE = "https://cloud-api.yandex.net/v1/disk"

DEFAULT_CREDENTIALS_FILE = os.path.join(os.path.expanduser("~"), ".ydfs", "credentials.yaml")
DEFAULT_PROFILE = "default"

# fields requested when children are not needed
MINIMAL_FIELDS = ("name", "path", "type", "size", "modified")

# raised by the models on payloads of the wrong shape
DECODE_ERRORS = (ValueError, TypeError, AttributeError, KeyError)

def _decode(build, data, what: str):
    """Run build on a response payload, as InternalError when the payload does not fit."""
    try:
        return build(data)
    except DECODE_ERRORS as e:
        raise InternalError(f"malformed {what} in response: {e}") from e

def _resource_from_dict(data):
    return normalize_resource(Resource.from_dict(data))

def load_token(profile: Optional[str] = None) -> str:
    """
    Resolve the OAuth token from the environment or the credentials file.

    ``YDFS_TOKEN`` wins over the file. The file (``~/.ydfs/credentials.yaml``
    unless ``YDFS_CREDENTIALS_FILE`` says otherwise) maps profile names to
    settings::

        default:
          token: y0_AgAAAAA...

    Args:
        profile (str, optional): Profile name. Falls back to ``YDFS_PROFILE``
            and then to ``default``.

    Returns:
        str: The token.

    Raises:
        ConfigurationError: If no token can be found.
    """
    token = os.environ.get("YDFS_TOKEN")
    if token:
        return token

    path = os.environ.get("YDFS_CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE)
    profile = profile or os.environ.get("YDFS_PROFILE", DEFAULT_PROFILE)
    if not os.path.exists(path):
        raise ConfigurationError(f"No token given, YDFS_TOKEN is unset and {path} does not exist")

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse credentials file {path}: {e}") from e

    settings = config.get(profile)
    if not isinstance(settings, dict):
        raise ConfigurationError(f"Profile '{profile}' not found in {path}")
    token = settings.get("token")
    if not token:
        raise ConfigurationError(f"Profile '{profile}' in {path} has no token")
    return token

class Session:
    """
    Connection settings for a DiskClient.

    Attributes:
        token (str): OAuth token sent with every request
        base_url (str): API endpoint
        timeout (float): Per-request timeout in seconds
        max_attempts (int): Attempts per round trip for transient failures
        page_size (int): Children requested per listing page
        operation_timeout (float): How long to wait for asynchronous operations
        poll_interval (float): Delay between asynchronous operation polls
    """

    def __init__(self, token: Optional[str] = None, profile: Optional[str] = None,
                 base_url: str = URL_BASE, timeout: float = 30.0, max_attempts: int = 3,
                 page_size: int = 1000, operation_timeout: float = 60.0,
                 poll_interval: float = 0.5):
        self.token = token or load_token(profile)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.page_size = page_size
        self.operation_timeout = operation_timeout
        self.poll_interval = poll_interval

class DiskClient(ResourceClient):
    """
    Client for the Yandex Disk REST API.

    Downloads and uploads go through the link the API hands out for each
    request. Every Resource returned is normalized so that paths carry no
    ``disk:`` prefix and the root is named "/".

    Args:
        session (Session, optional): Settings; a default Session is built when omitted.
        http_client (httpx.Client, optional): Pre-configured HTTP client. The
            DiskClient does not close clients it did not create.
    """

    def __init__(self, session: Optional[Session] = None, http_client: Optional[httpx.Client] = None):
        self.session = session or Session()
        self.max_attempts = self.session.max_attempts
        self._headers = {
            "Authorization": f"OAuth {self.session.token}",
            "Accept": "application/json",
        }
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=self.session.timeout, follow_redirects=True)
        self._resources_url = f"{self.session.base_url}/resources"

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    @retry()
    def _do(self, method: str, url: str, expected: Tuple[int, ...], params: Optional[Dict[str, Any]] = None,
            content: Optional[bytes] = None, operation: Optional[str] = None) -> httpx.Response:
        """
        Perform one HTTP round trip and check its status code.

        Raises:
            httpx.HTTPStatusError: If the status is not one of ``expected``;
                the retry decorator converts it to a DiskError.
        """
        start_time = time.time()
        response = self._http.request(method, url, params=params, content=content, headers=self._headers)
        logger.debug(f"{method} {url} {params or ''} -> {response.status_code} in {time.time() - start_time:.4f}s")
        if response.status_code not in expected:
            raise httpx.HTTPStatusError(
                f"unexpected status {response.status_code} for {method} {url}",
                request=response.request, response=response,
            )
        return response

    def _request_json(self, method: str, url: str, expected: Tuple[int, ...],
                      params: Optional[Dict[str, Any]] = None, operation: Optional[str] = None) -> Dict[str, Any]:
        response = self._do(method, url, expected, params=params, operation=operation)
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            raise InternalError(f"cannot decode response of {method} {url}: {e}") from e
        if not isinstance(body, dict):
            raise InternalError(f"expected a JSON object from {method} {url}, got {type(body).__name__}")
        return body

    def _request_link(self, url: str, params: Dict[str, Any], operation: str) -> Link:
        link = _decode(Link.from_dict, self._request_json("GET", url, (200,), params=params, operation=operation), "link")
        if link.templated:
            logger.warning(f"{operation}: API returned a templated link {link.href}, using it as is")
        return link

    def get_disk_info(self) -> DiskInfo:
        return _decode(DiskInfo.from_dict, self._request_json("GET", self.session.base_url, (200,), operation="disk"), "disk info")

    def fetch_metadata(self, path: str, include_children: bool = False) -> Resource:
        """
        Fetch one node, optionally with all of its children.

        Children are paged in with limit/offset until the reported total has
        been collected.

        Args:
            path (str): Absolute remote path
            include_children (bool): Fetch the full child listing

        Returns:
            Resource: The normalized node
        """
        if not include_children:
            params = {"path": path, "limit": 0, "fields": ",".join(MINIMAL_FIELDS)}
            data = self._request_json("GET", self._resources_url, (200,), params=params, operation="stat")
            return _decode(_resource_from_dict, data, "resource")

        data = None
        items = []
        offset = 0
        while True:
            params = {"path": path, "limit": self.session.page_size, "offset": offset}
            page = self._request_json("GET", self._resources_url, (200,), params=params, operation="list")
            if data is None:
                data = page
            embedded = page.get("_embedded")
            if not isinstance(embedded, dict):
                break
            batch = embedded.get("items") or []
            if not isinstance(batch, list) or not isinstance(embedded.get("total", 0), int):
                raise InternalError(f"malformed listing page of {path} at offset {offset}")
            items.extend(batch)
            offset += len(batch)
            if not batch or offset >= embedded.get("total", 0):
                break

        if isinstance(data.get("_embedded"), dict):
            data["_embedded"] = dict(data["_embedded"], items=items, offset=0, limit=len(items))
            logger.debug(f"fetched {len(items)} children of {path}")
        return _decode(_resource_from_dict, data, "resource")

    def fetch_file_bytes(self, path: str) -> bytes:
        link = self._request_link(f"{self._resources_url}/download", {"path": path}, "download")
        start_time = time.time()
        response = self._do(link.method, link.href, (200,), operation="download")
        logger.info(f"Downloaded {len(response.content)} bytes of {path} in {time.time() - start_time:.4f}s")
        return response.content

    def upload_file_bytes(self, path: str, data: bytes, overwrite: bool) -> None:
        params = {"path": path}
        if overwrite:
            params["overwrite"] = "true"
        link = self._request_link(f"{self._resources_url}/upload", params, "upload")
        start_time = time.time()
        self._do(link.method, link.href, (201, 202), content=data, operation="upload")
        logger.info(f"Uploaded {len(data)} bytes to {path} in {time.time() - start_time:.4f}s")

    def create_directory(self, path: str) -> None:
        self._do("PUT", self._resources_url, (201,), params={"path": path}, operation="mkdir")

    def delete_node(self, path: str, permanent: bool) -> None:
        """
        Delete a node.

        Deleting a non-empty directory may be performed asynchronously by
        the API (202 Accepted); in that case the operation is polled until
        it settles.
        """
        params = {"path": path}
        if permanent:
            params["permanently"] = "true"
        response = self._do("DELETE", self._resources_url, (202, 204), params=params, operation="delete")
        if response.status_code == 202:
            try:
                body = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
                raise InternalError(f"cannot decode operation link for delete of {path}: {e}") from e
            link = _decode(Link.from_dict, body, "operation link")
            self._wait_operation(link, path)

    def _wait_operation(self, link: Link, path: str) -> None:
        deadline = time.monotonic() + self.session.operation_timeout
        while True:
            status = self._request_json(link.method, link.href, (200,), operation="operation").get("status")
            logger.debug(f"operation {link.operation_id or link.href} for {path}: {status}")
            if status == "success":
                return
            if status == "failed":
                raise RemoteAPIError(f"asynchronous operation on {path} failed", error="OperationFailed")
            if time.monotonic() >= deadline:
                raise NetworkError(f"timed out waiting for operation on {path}", code="ERR_TIMEOUT")
            time.sleep(self.session.poll_interval)
