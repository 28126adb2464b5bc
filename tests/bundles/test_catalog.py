"""Tests for the catalog client, using httpx.MockTransport."""

import httpx
import pytest

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import (
    CatalogMalformedError,
    CatalogUnreachableError,
    DownloadFailedError,
    InvalidServiceNameError,
    ServiceNotInCatalogError,
)
from berth.utils.config import ConfigBuilder

SERVICES_LISTING = [
    {"name": "redis", "type": "dir", "sha": "a1"},
    {"name": "postgres", "type": "dir", "sha": "b2"},
    {"name": ".github", "type": "dir"},
    {"name": "README.md", "type": "file"},
    {"name": "mongo", "type": "dir"},
    {"name": "redis", "type": "dir"},
]


def listing_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/contents/services"):
        return httpx.Response(200, json=SERVICES_LISTING)
    if path.endswith("/contents/services/redis"):
        return httpx.Response(
            200,
            json=[
                {"name": "docker-compose.yml", "type": "file"},
                {"name": "README.md", "type": "file"},
                {"name": "conf", "type": "dir"},
            ],
        )
    if path.endswith("/services/redis/docker-compose.yml"):
        return httpx.Response(200, content=b"services: {}\n")
    return httpx.Response(404, json={"message": "Not Found"})


class TestListAvailable:
    def test_filters_dirs_hidden_and_duplicates(self, make_catalog):
        catalog = make_catalog(listing_handler)

        assert catalog.list_available() == ["mongo", "postgres", "redis"]

    def test_sends_branch_ref_and_accept_header(self, make_catalog):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        make_catalog(handler).list_available()

        assert seen[0].url.params["ref"] == "main"
        assert "github" in seen[0].headers["accept"]

    def test_listing_is_deterministic(self, make_catalog):
        catalog = make_catalog(listing_handler)

        assert catalog.list_available() == catalog.list_available()

    def test_http_error_status(self, make_catalog):
        catalog = make_catalog(lambda request: httpx.Response(403, text="rate limited"))

        with pytest.raises(CatalogUnreachableError) as exc_info:
            catalog.list_available()

        assert exc_info.value.status_code == 403
        assert exc_info.value.is_network_error()

    def test_transport_error(self, make_catalog):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CatalogUnreachableError, match="connection refused"):
            make_catalog(handler).list_available()

    def test_non_json_body(self, make_catalog):
        catalog = make_catalog(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(CatalogMalformedError, match="not JSON"):
            catalog.list_available()

    def test_object_instead_of_array(self, make_catalog):
        catalog = make_catalog(lambda request: httpx.Response(200, json={"message": "moved"}))

        with pytest.raises(CatalogMalformedError, match="expected a JSON array"):
            catalog.list_available()

    def test_entries_missing_fields(self, make_catalog):
        catalog = make_catalog(lambda request: httpx.Response(200, json=[{"type": "dir"}]))

        with pytest.raises(CatalogMalformedError):
            catalog.list_available()


class TestListFiles:
    def test_returns_only_files(self, make_catalog):
        assert make_catalog(listing_handler).list_files("redis") == ["docker-compose.yml", "README.md"]

    def test_unknown_service(self, make_catalog):
        with pytest.raises(ServiceNotInCatalogError, match="nope"):
            make_catalog(listing_handler).list_files("nope")

    def test_server_error(self, make_catalog):
        catalog = make_catalog(lambda request: httpx.Response(500))

        with pytest.raises(CatalogUnreachableError):
            catalog.list_files("redis")

    def test_invalid_name_makes_no_request(self, make_catalog):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(InvalidServiceNameError):
            make_catalog(handler).list_files("../secrets")

    @pytest.mark.parametrize("name", ["redis#evil", "redis?ref=dev", "redis%2Fx", "redis\nservices: 1"])
    def test_url_reserved_name_makes_no_request(self, make_catalog, name):
        seen = []

        def handler(request):
            seen.append(request)
            return listing_handler(request)

        catalog = make_catalog(handler)
        with pytest.raises(InvalidServiceNameError):
            catalog.list_files(name)
        with pytest.raises(InvalidServiceNameError):
            catalog.fetch_file_content(name, "docker-compose.yml")

        assert seen == []


class TestFetchFileContent:
    def test_downloads_bytes(self, make_catalog):
        content = make_catalog(listing_handler).fetch_file_content("redis", "docker-compose.yml")

        assert content == b"services: {}\n"

    def test_missing_file(self, make_catalog):
        with pytest.raises(DownloadFailedError) as exc_info:
            make_catalog(listing_handler).fetch_file_content("redis", "missing.txt")

        assert exc_info.value.filename == "missing.txt"
        assert "404" in str(exc_info.value)

    def test_transport_error(self, make_catalog):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DownloadFailedError, match="timed out"):
            make_catalog(handler).fetch_file_content("redis", "docker-compose.yml")


class TestSearch:
    def test_case_insensitive_substring(self, make_catalog):
        catalog = make_catalog(listing_handler)

        assert catalog.search("RE") == ["postgres", "redis"]

    def test_blank_query_returns_nothing(self, make_catalog):
        assert make_catalog(listing_handler).search("   ") == []


class TestUrls:
    def test_from_config(self, berth_home):
        catalog = CatalogClient.from_config(ConfigBuilder())
        try:
            assert catalog.contents_url() == (
                "https://api.github.com/repos/arjavdongaonkar/easy-containers/contents/services"
            )
            assert catalog.raw_file_url("redis", "README.md").endswith("/main/services/redis/README.md")
        finally:
            catalog.close()

    def test_trailing_slashes_stripped(self):
        with CatalogClient("https://api.test/", "https://raw.test/", services_root="/svc/") as catalog:
            assert catalog.contents_url("x") == "https://api.test/contents/svc/x"
            assert catalog.raw_file_url("x", "f") == "https://raw.test/svc/x/f"

    def test_path_segments_are_percent_encoded(self):
        with CatalogClient("https://api.test", "https://raw.test") as catalog:
            assert catalog.contents_url("a b") == "https://api.test/contents/services/a%20b"
            assert catalog.raw_file_url("redis", "conf#1?.yml") == (
                "https://raw.test/services/redis/conf%231%3F.yml"
            )
            assert catalog.raw_file_url("redis", "100%.txt").endswith("/redis/100%25.txt")

    def test_nested_services_root_keeps_separators(self):
        with CatalogClient("https://api.test", "https://raw.test", services_root="stacks/services") as catalog:
            assert catalog.raw_file_url("redis", "README.md") == (
                "https://raw.test/stacks/services/redis/README.md"
            )

    def test_reserved_filename_requests_that_file(self, make_catalog):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, content=b"ok")

        make_catalog(handler).fetch_file_content("redis", "notes#draft.md")

        assert seen[0].raw_path.endswith(b"/services/redis/notes%23draft.md")
        assert seen[0].path.endswith("/services/redis/notes#draft.md")
        assert seen[0].fragment == ""
