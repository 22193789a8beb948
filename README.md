# shiori

A Python library with the building blocks of a bookmark manager:

- `shiori.bookmarks`: `Bookmark` and `Tag` records that convert to and from plain dictionaries
- `shiori.urls`: URL cleaning that removes `utm_*` tracking parameters
- `shiori.config`: configuration read from the environment and a `.env` file
- `shiori.cli_utils`: helpers for command-line front ends (index ranges, title cleanup, listings)
- `shiori.download`: fetching a bookmarked page
- `shiori.netscape`: Netscape bookmark file export and import, and Pocket export import
- `shiori.check`: concurrent reachability checks
- `shiori.update`: batch changes to titles, excerpts, URLs and tags
- `shiori.thumbnail`: thumbnails made from article images

It needs Python 3.10 or later and depends on `platformdirs`, `beautifulsoup4` and `pillow`.

## Cleaning URLs

```python
from shiori.urls import remove_utm_params, InvalidURLError

remove_utm_params("https://example.com/page?utm_source=news&id=1")
# 'https://example.com/page?id=1'

try:
    remove_utm_params("/relative/path")
except InvalidURLError:
    ...  # a URL needs a scheme and a host
```

The remaining query parameters are sorted by key, and parameters without a
value are written without a trailing `=` (see
`query_encode_without_empty_values`).

## Bookmarks and tags

```python
from shiori.bookmarks import Bookmark, Tag

book = Bookmark(url="https://example.com", title="Example", tags=[Tag(name="news")])
data = book.to_dict()
assert Bookmark.from_dict(data) == book
```

Dictionary keys follow a JSON layout (`imageURL`, `hasContent`, `modifiedAt`,
`nBookmarks` and so on). A bookmark's plain-text `content` and a tag's
`deleted` flag are not written to the dictionary.

## Command-line helpers

```python
from shiori.cli_utils import parse_str_indices, normalize_space, validate_title

parse_str_indices(["1-3", "7"])              # [1, 2, 3, 7]
normalize_space("  hollow    inside \n")      # 'hollow inside'
validate_title("   ", "https://example.com")  # 'https://example.com'
```

`parse_str_indices` raises `InvalidIndexError` for anything that is not a
positive number or an ascending `min-max` range. `validate_title` also drops
invalid UTF-8 from byte titles. `is_url_valid` tells whether a string is an
absolute URL with a host. `print_bookmarks` writes a readable listing to a
stream, coloured when the stream is a terminal and `NO_COLOR` is unset.
`open_browser` opens a URL with the platform's default handler
(`open`, `cmd /c start` or `xdg-open`), `get_terminal_width` returns the width
of the terminal on standard input (0 if there is none), and
`set_if_flag_changed` applies a function to a configuration only when a flag
name is among the flags that were set.

## Downloading

`download_bookmark(url, timeout=60.0)` sends a GET request and returns the open
response body with its `Content-Type`. Error statuses come back like any other
response; the caller closes the body.

## Importing and exporting

`export_bookmarks` writes bookmarks as a Netscape bookmark file to a text
stream; `write_export_file` writes to a path, creating its directory, and
raises `ValueError` when there is nothing to export.

`parse_netscape(html, generate_tag=False, exists=None)` and
`parse_pocket(html, exists=None)` read exported HTML into bookmarks. URLs are
cleaned with `remove_utm_params`; invalid URLs and duplicates are skipped. The
optional `exists` callable receives each cleaned URL and returns whether it is
already stored; such URLs are skipped too. With `generate_tag` the name of the
enclosing folder is added as a tag.

## Checking and updating

`check_bookmarks(bookmarks, timeout=60.0, workers=10, on_message=None)`
requests every bookmark's URL from a thread pool and returns the sorted IDs of
the unreachable ones. Any HTTP response, whatever its status, counts as
reachable. `on_message` is called with `(position, total, message, failed)` as
each check finishes.

`update_bookmarks(bookmarks, title="", excerpt="", url="", tags=())` returns
updated copies. A new URL is cleaned and may only be given for a single
bookmark, otherwise `ValueError` is raised. In `tags`, a name written as
`-name` marks that tag as deleted and other names are added when missing;
`split_tag_flags` and `apply_updates` are the steps it is built from.

## Thumbnails

`make_thumbnail(image_bytes)` returns JPEG bytes. Images at least 600x400 with
a width/height ratio above 1.3 keep their size; others are placed, scaled
down to fit if needed, in the centre of a blurred and brightened 600x400 copy
of themselves. `download_book_image(url, dst_path, timeout=60.0)` fetches an
image and stores its thumbnail, raising `UnsupportedImageTypeError` for
anything other than JPEG, PNG or WebP.

## Configuration

`parse_server_configuration(environ=None, dotenv_path=".env")` builds a
`Config` with `database`, `storage` and `http` sections. `HOSTNAME` is read
from the environment as it is; every other key is looked up first in the
`.env` file, without a prefix (for example `HTTP_PORT=9999`), and then as a
`SHIORI_<KEY>` environment variable (`SHIORI_DIR`, `SHIORI_DATABASE_URL`,
`SHIORI_DBMS`, `SHIORI_HTTP_PORT`, `SHIORI_HTTP_READ_TIMEOUT` and so on).
Invalid values raise `ConfigError`. Durations such as `10s` or `1m30s` are read
by `parse_duration`.

`Config.set_defaults(logger=None, portable_mode=False)` fills in the data
directory (from `get_storage_directory`: a `shiori-data` directory next to the
program in portable mode, the user data directory otherwise), an SQLite
database URL inside it, and a random HTTP secret key. `debug_configuration`
logs every setting at debug level.

## What this package does not do

There is no `shiori` command, no web server or web interface, and no database:
the package does not store bookmarks anywhere. It does not extract readable
article text from pages, create offline archives or build e-books. Callers
supply the storage and wire the functions above into their own program.