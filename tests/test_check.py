import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from shiori.bookmarks import Bookmark
from shiori.check import check_bookmarks


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        status = 200 if self.path == "/" else 404
        body = b"ok"
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def base_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def test_reports_unreachable_ids_sorted(base_url):
    books = [
        Bookmark(id=3, url=base_url + "/"),
        Bookmark(id=2, url="notaurl"),
        Bookmark(id=1, url="http://"),
    ]
    assert check_bookmarks(books, timeout=5) == [1, 2]


def test_error_status_counts_as_reachable(base_url):
    books = [Bookmark(id=4, url=base_url + "/missing")]
    assert check_bookmarks(books, timeout=5) == []


def test_messages_cover_every_bookmark(base_url):
    messages = []
    books = [
        Bookmark(id=1, url=base_url + "/"),
        Bookmark(id=2, url="notaurl"),
    ]
    check_bookmarks(
        books, timeout=5, workers=2, on_message=lambda *msg: messages.append(msg)
    )
    assert sorted(pos for pos, _, _, _ in messages) == [1, 2]
    assert {total for _, total, _, _ in messages} == {len(books)}
    reached = [text for _, _, text, failed in messages if not failed]
    failures = [text for _, _, text, failed in messages if failed]
    assert reached == [f"Reached {base_url}/"]
    assert len(failures) == 1
    assert failures[0].startswith("failed to reach notaurl: ")


def test_empty_input_sends_no_messages():
    messages = []
    assert check_bookmarks([], on_message=lambda *msg: messages.append(msg)) == []
    assert messages == []


def test_rejects_zero_workers():
    with pytest.raises(ValueError):
        check_bookmarks([Bookmark(id=1, url="http://")], workers=0)