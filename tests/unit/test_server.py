"""
Unit tests for Server configuration and ConnectionHandler.handle().
"""

import json
import logging

import pytest

from hike import Anchor, ConfigurationError, ConnectionHandler, DynamicPage, Server, ServerConfig
from hike.handlers import DynamicPageRegistry
from hike.http import HTTPRequest, HTTPStatus


def make_handler(root, pages=(), **config_overrides) -> ConnectionHandler:
    config = ServerConfig(root_dir=str(root), **config_overrides)
    return ConnectionHandler.snapshot(config, DynamicPageRegistry(pages))


def request(url: str) -> HTTPRequest:
    return HTTPRequest(method="GET", url=url, client_address=("10.0.0.7", 40000))


class TestServerConfiguration:

    def test_defaults(self):
        server = Server("127.0.0.1", 8080)

        assert server.root_dir == "."
        assert server.default_page == "index.html"
        assert server.debug is False
        assert server.dynamic_pages == ()
        assert server.address == ("127.0.0.1", 8080)

    def test_set_debug(self):
        server = Server("127.0.0.1", 8080)
        server.set_debug(True)
        assert server.debug is True

    def test_set_root_dir(self, site_root):
        server = Server("127.0.0.1", 8080)
        server.set_root_dir(site_root)
        assert server.root_dir == str(site_root)

    def test_set_root_dir_missing_keeps_previous(self, site_root, tmp_path):
        server = Server("127.0.0.1", 8080).set_root_dir(site_root)

        with pytest.raises(ConfigurationError, match="does not exist"):
            server.set_root_dir(tmp_path / "nope")

        assert server.root_dir == str(site_root)

    def test_set_root_dir_file_keeps_previous(self, site_root):
        server = Server("127.0.0.1", 8080).set_root_dir(site_root)

        with pytest.raises(ConfigurationError, match="not a directory"):
            server.set_root_dir(site_root / "hello.txt")

        assert server.root_dir == str(site_root)

    def test_set_default_page(self):
        server = Server("127.0.0.1", 8080).set_default_page("home.htm")
        assert server.default_page == "home.htm"

    def test_register_allows_duplicates(self):
        server = Server("127.0.0.1", 8080)
        server.register_dynamic_page(DynamicPage("/"))
        server.register_dynamic_page(DynamicPage("/"))

        assert len(server.dynamic_pages) == 2

    def test_dynamic_decorator(self):
        server = Server("127.0.0.1", 8080)

        @server.dynamic("/status", "{{TIME}}")
        def now():
            return "12:00"

        @server.dynamic("/status", "{{DATE}}")
        def today():
            return "2026-10-18"

        assert now() == "12:00"
        (page,) = server.dynamic_pages
        assert page.url == "/status"
        assert [a.marker for a in page.anchors] == ["{{TIME}}", "{{DATE}}"]

    def test_config_root_dir_validated(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Server("127.0.0.1", 0, ServerConfig(root_dir=str(tmp_path / "missing")))

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigurationError):
            Server("127.0.0.1", 0, ServerConfig(min_workers=0))

    def test_address_overrides_config(self):
        server = Server("0.0.0.0", 9000, ServerConfig(host="127.0.0.1", port=1234))
        assert server.address == ("0.0.0.0", 9000)

    def test_from_config(self):
        server = Server.from_config(ServerConfig(host="127.0.0.1", port=1234))
        assert server.address == ("127.0.0.1", 1234)

    def test_config_property_is_a_copy(self):
        server = Server("127.0.0.1", 8080)
        server.config.debug = True
        assert server.debug is False


class TestConnectionHandler:

    def test_static_file(self, site_root):
        path, response = make_handler(site_root).handle(request("/hello.txt"))

        assert path == f"{site_root}/hello.txt"
        assert response.status == HTTPStatus.OK
        assert response.body == b"hello, world\n"

    def test_missing_file(self, site_root):
        _, response = make_handler(site_root).handle(request("/missing.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b""

    def test_dynamic_page_matches_requested_url(self, site_root):
        calls = []

        def clock():
            calls.append(1)
            return "12:00"

        page = DynamicPage("/status", [Anchor("{{TIME}}", clock)])
        path, response = make_handler(site_root, [page]).handle(request("/status"))

        assert path == f"{site_root}/status/index.html"
        assert response.body == b"Time: 12:00\nTime: 12:00\n"
        assert len(calls) == 1

    def test_resolved_path_does_not_match_page(self, site_root):
        page = DynamicPage("/status/index.html", [Anchor("{{TIME}}", lambda: "12:00")])
        _, response = make_handler(site_root, [page]).handle(request("/status"))

        assert b"{{TIME}}" in response.body

    def test_first_matching_page_wins(self, site_root):
        pages = [
            DynamicPage("/status", [Anchor("{{TIME}}", lambda: "first")]),
            DynamicPage("/status", [Anchor("{{TIME}}", lambda: "second")]),
        ]
        _, response = make_handler(site_root, pages).handle(request("/status"))

        assert b"first" in response.body
        assert b"second" not in response.body

    def test_dynamic_page_on_missing_file_stays_404(self, site_root):
        never = []
        page = DynamicPage("/gone", [Anchor("{{X}}", lambda: never.append(1) or "x")])
        _, response = make_handler(site_root, [page]).handle(request("/gone"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b""
        assert never == []

    def test_callback_error_is_500(self, site_root, caplog):
        def broken():
            raise RuntimeError("sensor offline")

        page = DynamicPage("/status", [Anchor("{{TIME}}", broken)])

        with caplog.at_level(logging.ERROR, logger="hike.server"):
            _, response = make_handler(site_root, [page]).handle(request("/status"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b""
        assert "sensor offline" in caplog.text

    def test_debug_logs_access_line(self, site_root, caplog):
        handler = make_handler(site_root, debug=True)

        with caplog.at_level(logging.INFO, logger="hike.access"):
            handler.handle(request("/missing.txt"))

        assert f"10.0.0.7:40000: /missing.txt = {site_root}/missing.txt => 404 Not Found" in caplog.text

    def test_debug_json_access_line(self, site_root, caplog):
        handler = make_handler(site_root, debug=True, log_format="json")

        with caplog.at_level(logging.INFO, logger="hike.access"):
            handler.handle(request("/"))

        record = json.loads(caplog.records[-1].getMessage())
        assert record["url"] == "/"
        assert record["status"] == 200
        assert record["dynamic"] is False

    def test_no_access_line_without_debug(self, site_root, caplog):
        with caplog.at_level(logging.INFO, logger="hike.access"):
            make_handler(site_root).handle(request("/"))

        assert not [r for r in caplog.records if r.name == "hike.access"]

    def test_debug_logs_each_anchor(self, site_root, caplog):
        def clock():
            return "12:00"

        page = DynamicPage("/status", [Anchor("{{TIME}}", clock), Anchor("{{NOPE}}", clock)])
        handler = make_handler(site_root, [page], debug=True)

        with caplog.at_level(logging.INFO, logger="hike.access"):
            handler.handle(request("/status"))

        messages = [r.getMessage() for r in caplog.records if r.name == "hike.access"]
        assert len(messages) == 3
        assert "/status: anchor '{{TIME}}' -> " in messages[1]
        assert "/status: anchor '{{NOPE}}' -> " in messages[2]
        assert "clock" in messages[1]

    def test_debug_json_anchor_line(self, site_root, caplog):
        page = DynamicPage("/status", [Anchor("{{TIME}}", lambda: "12:00")])
        handler = make_handler(site_root, [page], debug=True, log_format="json")

        with caplog.at_level(logging.INFO, logger="hike.access"):
            handler.handle(request("/status"))

        record = json.loads(caplog.records[-1].getMessage())
        assert record["url"] == "/status"
        assert record["marker"] == "{{TIME}}"

    def test_no_anchor_lines_without_debug(self, site_root, caplog):
        page = DynamicPage("/status", [Anchor("{{TIME}}", lambda: "12:00")])

        with caplog.at_level(logging.INFO, logger="hike.access"):
            make_handler(site_root, [page]).handle(request("/status"))

        assert not [r for r in caplog.records if r.name == "hike.access"]

    def test_snapshot_isolated_from_server_changes(self, site_root):
        server = Server("127.0.0.1", 0).set_root_dir(site_root)
        handler = ConnectionHandler.snapshot(server._config, server._registry)

        server.set_default_page("other.html")
        server.register_dynamic_page(DynamicPage("/status", [Anchor("{{TIME}}", lambda: "late")]))

        path, response = handler.handle(request("/status"))
        assert path.endswith("status/index.html")
        assert b"{{TIME}}" in response.body
