import io
from datetime import datetime, timezone

import pytest

from shiori import netscape
from shiori.bookmarks import Bookmark, Tag
from shiori.urls import remove_utm_params

FMT = netscape.DATABASE_DATE_FORMAT

SAMPLE = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3>Reading</H3>
    <DL><p>
        <DT><A HREF="https://example.com/a?utm_source=x&amp;id=7" ADD_DATE="1600000000" TAGS="news,  tech ">  First   page </A>
        <DT><A HREF="https://example.com/b" LAST_MODIFIED="1600000100" ADD_DATE="1600000000">Second</A>
    </DL><p>
</DL><p>
"""

POCKET = """<html><body><ul>
<li><a href="https://example.com/p?utm_medium=feed" time_added="1500000000" tags="x,,y">Pocket one</a></li>
<li><a href="https://example.com/q" time_added="soon"></a></li>
<li><a href="/relative">Bad</a></li>
</ul></body></html>
"""


def test_parse_netscape_reads_fields():
    books = netscape.parse_netscape(SAMPLE)
    assert [b.url for b in books] == [
        "https://example.com/a?id=7",
        "https://example.com/b",
    ]
    assert books[0].title == "First page"
    assert [t.name for t in books[0].tags] == ["news", "tech"]
    assert books[1].tags == []


def test_parse_netscape_dates_prefer_last_modified():
    books = netscape.parse_netscape(SAMPLE)
    assert books[0].modified_at == datetime.fromtimestamp(1600000000).strftime(FMT)
    assert books[1].modified_at == datetime.fromtimestamp(1600000100).strftime(FMT)


def test_parse_netscape_generate_tag_adds_folder():
    books = netscape.parse_netscape(SAMPLE, generate_tag=True)
    assert [t.name for t in books[0].tags] == ["news", "tech", "Reading"]
    assert [t.name for t in books[1].tags] == ["Reading"]


def test_parse_netscape_skips_duplicates_and_existing():
    html = (
        '<DL><p><DT><A HREF="https://example.com/a">A</A>'
        '<DT><A HREF="https://example.com/a">Again</A>'
        '<DT><A HREF="https://example.com/b">B</A></DL>'
    )
    assert [b.title for b in netscape.parse_netscape(html)] == ["A", "B"]
    stored = netscape.parse_netscape(html, exists=lambda url: url.endswith("/a"))
    assert [b.url for b in stored] == ["https://example.com/b"]


def test_parse_netscape_skips_when_lookup_fails():
    def broken(url):
        raise RuntimeError("database down")

    html = '<DL><p><DT><A HREF="https://example.com/a">A</A></DL>'
    assert netscape.parse_netscape(html, exists=broken) == []


def test_parse_netscape_skips_invalid_date_and_url():
    html = (
        '<DL><p><DT><A HREF="https://example.com/a" ADD_DATE="yesterday">A</A>'
        '<DT><A HREF="/relative">B</A>'
        '<DT><A HREF="https://example.com/c">C</A></DL>'
    )
    books = netscape.parse_netscape(html)
    assert [b.url for b in books] == ["https://example.com/c"]


def test_parse_netscape_missing_date_uses_now():
    before = datetime.now().replace(microsecond=0)
    books = netscape.parse_netscape('<DL><p><DT><A HREF="https://example.com/">T</A></DL>')
    after = datetime.now()
    stamp = datetime.strptime(books[0].modified_at, FMT)
    assert before <= stamp <= after


def test_parse_netscape_empty_title_falls_back_to_url():
    books = netscape.parse_netscape('<DL><p><DT><A HREF="https://example.com/x">  </A></DL>')
    assert books[0].title == books[0].url


def test_export_header_and_footer():
    out = io.StringIO()
    netscape.export_bookmarks([], out)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("<!DOCTYPE NETSCAPE-Bookmark-file-1>")
    assert lines[0].endswith("<DL>")
    assert lines[-1] == "</DL>"


def test_export_line_format():
    moment = datetime(2021, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    book = Bookmark(
        url="https://example.com/x",
        title="Title",
        tags=[Tag(name="a"), Tag(name="b")],
        modified_at=moment.strftime(FMT),
    )
    out = io.StringIO()
    netscape.export_bookmarks([book], out)
    stamp = int(moment.timestamp())
    assert out.getvalue().splitlines()[1] == (
        f'<DT><A HREF="https://example.com/x" ADD_DATE="{stamp}" '
        f'LAST_MODIFIED="{stamp}" TAGS="a,b">Title</A>'
    )


def test_export_uses_url_for_empty_title_and_now_for_bad_date():
    book = Bookmark(url="https://example.com/y", title=" ", modified_at="garbage")
    before = int(datetime.now().timestamp())
    out = io.StringIO()
    netscape.export_bookmarks([book], out)
    after = int(datetime.now().timestamp()) + 1
    line = out.getvalue().splitlines()[1]
    assert line.endswith(">https://example.com/y</A>")
    stamp = int(line.split('ADD_DATE="')[1].split('"')[0])
    assert before <= stamp <= after


def test_export_then_import_round_trip():
    books = [
        Bookmark(url="https://example.com/one", title="One", tags=[Tag(name="t1")]),
        Bookmark(url="https://example.com/two", title="Two", tags=[]),
    ]
    out = io.StringIO()
    netscape.export_bookmarks(books, out)
    parsed = netscape.parse_netscape(out.getvalue())
    assert [(b.url, b.title) for b in parsed] == [(b.url, b.title) for b in books]
    assert [[t.name for t in b.tags] for b in parsed] == [["t1"], []]


def test_write_export_file_creates_directory(tmp_path):
    target = tmp_path / "nested" / "dir" / "out.html"
    book = Bookmark(url="https://example.com/z", title="Zed")
    netscape.write_export_file([book], str(target))
    parsed = netscape.parse_netscape(target.read_text(encoding="utf-8"))
    assert [(b.url, b.title) for b in parsed] == [(book.url, book.title)]


def test_write_export_file_rejects_empty(tmp_path):
    target = tmp_path / "out.html"
    with pytest.raises(ValueError):
        netscape.write_export_file([], str(target))
    assert not target.exists()


def test_parse_pocket():
    books = netscape.parse_pocket(POCKET)
    assert [b.url for b in books] == [
        remove_utm_params("https://example.com/p?utm_medium=feed"),
        "https://example.com/q",
    ]
    assert books[0].title == "Pocket one"
    assert [t.name for t in books[0].tags] == ["x", "y"]
    assert books[0].modified_at == datetime.fromtimestamp(1500000000).strftime(FMT)
    assert books[1].title == books[1].url
    assert books[1].modified_at == datetime.fromtimestamp(0).strftime(FMT)


def test_parse_pocket_respects_exists():
    books = netscape.parse_pocket(POCKET, exists=lambda url: url.endswith("/q"))
    assert [b.title for b in books] == ["Pocket one"]