"""
test_request.py

Tests for request construction and list options.
"""

import json
from datetime import datetime, timezone

import pytest

from ocean_client.config import ClientConfig
from ocean_client.data_structure.models import Resource, ResourceType, TagResourcesRequest
from ocean_client.errors import EncodingError, ErrorKind, MalformedURLError
from ocean_client.request import ListOptions, add_options, build_request

CONFIG = ClientConfig(base_url="https://api.example.test/", user_agent="ua/1.0")


class TestURLResolution:
    """Joining request paths onto the base URL."""

    def test_relative_path(self):
        req = build_request(CONFIG, "GET", "v2/tags")
        assert str(req.url) == "https://api.example.test/v2/tags"

    def test_relative_path_below_base_path(self):
        config = ClientConfig(base_url="https://api.example.test/api")
        req = build_request(config, "GET", "v2/tags")
        assert str(req.url) == "https://api.example.test/api/v2/tags"

    def test_absolute_url_wins(self):
        req = build_request(CONFIG, "GET", "https://other.example.test/x")
        assert str(req.url) == "https://other.example.test/x"

    def test_query_string_kept(self):
        req = build_request(CONFIG, "GET", "v2/tags?page=2")
        assert req.url.params["page"] == "2"

    def test_malformed_path(self):
        with pytest.raises(MalformedURLError) as excinfo:
            build_request(CONFIG, "GET", "http://api.example.test:notaport/")
        assert excinfo.value.kind is ErrorKind.MALFORMED_URL


class TestHeaders:
    """Standard and configured headers."""

    def test_standard_headers(self):
        req = build_request(CONFIG, "GET", "v2/tags")
        assert req.headers["Accept"] == "application/json"
        assert req.headers["User-Agent"] == "ua/1.0"
        assert "Authorization" not in req.headers

    def test_extra_headers_do_not_override_standard_ones(self):
        config = CONFIG.with_options(headers={"X-Trace": "abc", "accept": "text/html"})
        req = build_request(config, "GET", "v2/tags")
        assert req.headers["X-Trace"] == "abc"
        assert req.headers.get_list("Accept") == ["application/json"]

    def test_token_sets_authorization(self):
        config = ClientConfig(token="s3cret")
        req = build_request(config, "GET", "v2/tags")
        assert req.headers["Authorization"] == "Bearer s3cret"

    def test_timeout_extension(self):
        config = ClientConfig(timeout=12.5)
        req = build_request(config, "GET", "v2/tags")
        assert req.extensions["timeout"]["read"] == 12.5


class TestBody:
    """Body serialization rules per method."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_body_bearing_methods_serialize(self, method):
        req = build_request(CONFIG, method, "v2/tags", {"name": "web"})
        assert req.headers["Content-Type"] == "application/json"
        assert json.loads(req.content) == {"name": "web"}

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS", "get"])
    def test_bodyless_methods_never_serialize(self, method):
        """Even an unserializable body is ignored for retrieval methods."""
        req = build_request(CONFIG, method, "v2/tags", object())
        assert req.content == b""
        assert "Content-Type" not in req.headers

    def test_post_without_body(self):
        req = build_request(CONFIG, "POST", "v2/tags")
        assert req.content == b""
        assert "Content-Type" not in req.headers

    def test_model_body_uses_wire_names(self):
        body = TagResourcesRequest(
            resources=[Resource(id="42", type=ResourceType.DROPLET), Resource(id="7")]
        )
        req = build_request(CONFIG, "POST", "v2/tags/web/resources", body)
        assert json.loads(req.content) == {
            "resources": [
                {"resource_id": "42", "resource_type": "droplet"},
                {"resource_id": "7"},
            ]
        }

    def test_datetime_in_plain_body(self):
        body = {"at": datetime(2024, 1, 2, tzinfo=timezone.utc)}
        req = build_request(CONFIG, "POST", "v2/things", body)
        assert json.loads(req.content)["at"].startswith("2024-01-02T00:00:00")

    def test_unserializable_body(self):
        with pytest.raises(EncodingError) as excinfo:
            build_request(CONFIG, "POST", "v2/tags", {"name": object()})
        assert excinfo.value.kind is ErrorKind.ENCODING

    def test_building_is_repeatable(self):
        first = build_request(CONFIG, "POST", "v2/tags", {"name": "web"})
        second = build_request(CONFIG, "POST", "v2/tags", {"name": "web"})
        assert first.url == second.url
        assert first.content == second.content
        assert dict(first.headers) == dict(second.headers)


class TestListOptions:
    """Pagination options as query parameters."""

    def test_none(self):
        assert add_options("v2/tags", None) == "v2/tags"

    def test_zero_values_omitted(self):
        assert add_options("v2/tags", ListOptions()) == "v2/tags"

    def test_page_and_per_page(self):
        path = add_options("v2/tags", ListOptions(page=2, per_page=50))
        assert path == "v2/tags?page=2&per_page=50"

    def test_only_page(self):
        assert add_options("v2/tags", ListOptions(page=3)) == "v2/tags?page=3"

    def test_existing_query_kept(self):
        path = add_options("v2/tags?name=web", ListOptions(per_page=10))
        assert path == "v2/tags?name=web&per_page=10"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            ListOptions(page=-1)
