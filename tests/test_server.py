"""
Tests for the thumbnail directory browser.

Runs a real server on a free port in a background thread. Traversal
attempts use %2F so the client sends the '..' segment unchanged.
"""

import os
import sys
import threading

import httpx
import pytest

from tagger.server import make_server, render_listing, thumbnail_name


@pytest.fixture
def thumbs(tmp_path):
    path = tmp_path / "thumbs"
    path.mkdir()
    return path


@pytest.fixture
def base_url(root, thumbs):
    server = make_server(root, thumbs, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def client(base_url):
    with httpx.Client(base_url=base_url, timeout=5) as c:
        yield c


class TestListing:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "Browsing: /" in resp.text
        assert 'href="/photos"' in resp.text
        assert "doc.txt" in resp.text

    def test_subdirectory(self, root, client):
        resp = client.get("/photos")
        assert resp.status_code == 200
        assert "Browsing: /photos" in resp.text
        assert 'href="/"' in resp.text
        expected = thumbnail_name(str(root / "photos" / "cat.jpg"))
        assert f'src="/thumb/{expected}"' in resp.text

    def test_missing(self, client):
        assert client.get("/nothing-here").status_code == 404

    def test_file_is_not_listed(self, client):
        assert client.get("/doc.txt").status_code == 400

    def test_parent_escape_forbidden(self, client):
        assert client.get("/..%2F..%2F").status_code == 403

    def test_sibling_prefix_forbidden(self, root, client):
        sibling = root.parent / (root.name + "sibling")
        sibling.mkdir()
        resp = client.get(f"/..%2F{sibling.name}")
        assert resp.status_code == 403


class TestUndecodableNames:
    @pytest.fixture
    def bad_name(self):
        if sys.platform != "linux":
            pytest.skip("needs byte file names")
        return os.fsdecode(b"bad\xff")

    def test_listing_replaces_undecodable_name(self, root, bad_name, client):
        (root / (bad_name + ".txt")).write_text("x")
        resp = client.get("/")
        assert resp.status_code == 200
        assert "bad\ufffd.txt" in resp.text
        assert "doc.txt" in resp.text

    def test_undecodable_directory_is_browsable(self, root, bad_name, client):
        (root / bad_name).mkdir()
        (root / bad_name / "inner.txt").write_text("x")
        assert 'href="/bad%FF"' in client.get("/").text

        resp = client.get("/bad%FF")
        assert resp.status_code == 200
        assert "inner.txt" in resp.text

    def test_thumbnail_name_uses_raw_bytes(self, bad_name):
        assert thumbnail_name("/home/" + bad_name) != thumbnail_name("/home/bad\ufffd")


class TestThumbnails:
    def test_serves_thumbnail(self, root, thumbs, client):
        name = thumbnail_name(str(root / "doc.txt"))
        (thumbs / name).write_bytes(b"\x89PNG fake")
        resp = client.get(f"/thumb/{name}")
        assert resp.status_code == 200
        assert resp.content == b"\x89PNG fake"
        assert resp.headers["content-type"] == "image/png"

    def test_missing_thumbnail(self, client):
        assert client.get("/thumb/0123.png").status_code == 404

    def test_thumbnail_escape_forbidden(self, thumbs, client):
        (thumbs.parent / "secret.txt").write_text("secret")
        resp = client.get("/thumb/..%2Fsecret.txt")
        assert resp.status_code == 403


class TestRendering:
    def test_thumbnail_name_format(self):
        name = thumbnail_name("/home/me/cat.jpg")
        assert name.endswith(".png")
        assert len(name) == 36
        assert name == thumbnail_name("/home/me/cat.jpg")
        assert name != thumbnail_name("/home/me/dog.jpg")

    def test_names_escaped(self, root):
        (root / "<b>.txt").write_text("x")
        page = render_listing(str(root), "/")
        assert "&lt;b&gt;.txt" in page
        assert "<b>.txt" not in page

    def test_directories_first(self, root):
        (root / "aaa.txt").write_text("x")
        page = render_listing(str(root), "/")
        assert page.index("photos") < page.index("aaa.txt")
