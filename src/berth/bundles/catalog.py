"""Catalog Client: read-only access to the remote service catalog.

The catalog is a GitHub-style repository. Two endpoints are used:

- contents API: ``GET <api_url>/contents/<services_root>[/<service>]`` returns a
  JSON array of ``{"name": ..., "type": "dir" | "file", ...}`` objects
- raw content: ``GET <raw_url>/<services_root>/<service>/<filename>`` returns
  the file bytes

Every call is a single attempt. Retry policy, if any, belongs to the caller.

Examples:
    >>> client = CatalogClient.from_config(config)
    >>> client.list_available()
    ['mongo', 'postgres', 'redis']
    >>> client.list_files("redis")
    ['README.md', 'docker-compose.yml']
"""

from typing import Any, Literal
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from berth.bundles.exceptions import (
    CatalogMalformedError,
    CatalogUnreachableError,
    DownloadFailedError,
    ServiceNotInCatalogError,
)
from berth.bundles.store import validate_service_name
from berth.utils.logger import get_logger

logger = get_logger("catalog")

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "berth-cli"


class CatalogEntry(BaseModel):
    """One entry of a contents listing."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: Literal["dir", "file", "symlink", "submodule"]

    @property
    def kind(self) -> str:
        return self.type


class CatalogClient:
    """HTTP client for the remote catalog.

    :param api_url: Base of the contents API (``.../repos/<owner>/<repo>``)
    :param raw_url: Base of the raw content host (``.../<owner>/<repo>/<branch>``)
    :param services_root: Directory inside the repository holding services
    :param branch: Git ref passed to the contents API
    :param hidden_prefix: Entries starting with this prefix are not services
    :param timeout: Per-request timeout in seconds
    :param client: Optional preconfigured ``httpx.Client`` (used by tests)
    """

    def __init__(
        self,
        api_url: str,
        raw_url: str,
        services_root: str = "services",
        branch: str = "main",
        hidden_prefix: str = ".",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self.services_root = services_root.strip("/")
        self.branch = branch
        self.hidden_prefix = hidden_prefix
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    @classmethod
    def from_config(cls, config, client: httpx.Client | None = None) -> "CatalogClient":
        """Build a client from a ConfigBuilder's ``catalog`` section."""
        return cls(
            api_url=config.get("catalog.api_url"),
            raw_url=config.get("catalog.raw_url"),
            services_root=config.get("catalog.services_root", "services"),
            branch=config.get("catalog.branch", "main"),
            hidden_prefix=config.get("catalog.hidden_prefix", "."),
            timeout=float(config.get("catalog.timeout", DEFAULT_TIMEOUT)),
            client=client,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Contents API
    # ------------------------------------------------------------------

    # Each path segment is percent-encoded; services_root may span segments.
    def contents_url(self, service: str | None = None) -> str:
        url = f"{self.api_url}/contents/{quote(self.services_root)}"
        if service is not None:
            url = f"{url}/{quote(service, safe='')}"
        return url

    def raw_file_url(self, service: str, filename: str) -> str:
        segments = "/".join(quote(part, safe="") for part in (service, filename))
        return f"{self.raw_url}/{quote(self.services_root)}/{segments}"

    def _get_listing(self, url: str) -> httpx.Response:
        try:
            return self._client.get(
                url,
                params={"ref": self.branch},
                headers={"Accept": "application/vnd.github.v3+json"},
            )
        except httpx.HTTPError as e:
            raise CatalogUnreachableError(url, str(e) or type(e).__name__) from e

    def _parse_entries(self, url: str, response: httpx.Response) -> list[CatalogEntry]:
        try:
            data: Any = response.json()
        except ValueError as e:
            raise CatalogMalformedError(url, f"response is not JSON ({e})") from e

        if not isinstance(data, list):
            raise CatalogMalformedError(url, f"expected a JSON array, got {type(data).__name__}")

        try:
            return [CatalogEntry.model_validate(item) for item in data]
        except ValidationError as e:
            raise CatalogMalformedError(url, f"unexpected entry shape: {e.errors()[0]['msg']}") from e

    def list_available(self) -> list[str]:
        """Sorted, deduplicated names of installable services.

        :raises CatalogUnreachableError: on transport error or non-2xx status
        :raises CatalogMalformedError: if the body is not a list of entries
        """
        url = self.contents_url()
        response = self._get_listing(url)
        if not response.is_success:
            raise CatalogUnreachableError(
                url, f"HTTP {response.status_code} {response.reason_phrase}", response.status_code
            )

        entries = self._parse_entries(url, response)
        names = {
            entry.name
            for entry in entries
            if entry.kind == "dir" and not entry.name.startswith(self.hidden_prefix)
        }
        logger.debug(f"Catalog lists {len(names)} services")
        return sorted(names)

    def list_files(self, name: str) -> list[str]:
        """Names of the files directly inside a service's catalog directory.

        :raises ServiceNotInCatalogError: when the catalog answers 404
        :raises CatalogUnreachableError: on other failures
        :raises CatalogMalformedError: if the body is not a list of entries
        """
        validate_service_name(name)
        url = self.contents_url(name)
        response = self._get_listing(url)
        if response.status_code == 404:
            raise ServiceNotInCatalogError(name, url)
        if not response.is_success:
            raise CatalogUnreachableError(
                url, f"HTTP {response.status_code} {response.reason_phrase}", response.status_code
            )

        entries = self._parse_entries(url, response)
        return [entry.name for entry in entries if entry.kind == "file"]

    def fetch_file_content(self, name: str, filename: str) -> bytes:
        """Raw bytes of one catalog file.

        :raises DownloadFailedError: on transport error or non-2xx status
        """
        validate_service_name(name)
        url = self.raw_file_url(name, filename)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise DownloadFailedError(name, filename, url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise DownloadFailedError(
                name, filename, url, f"HTTP {response.status_code} {response.reason_phrase}"
            )
        return response.content

    def search(self, query: str) -> list[str]:
        """Catalog services whose name contains ``query`` (case-insensitive)."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [name for name in self.list_available() if needle in name.lower()]
