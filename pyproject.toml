[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shiori"
version = "1.0.0"
description = "Bookmark toolkit: URL cleaning, Netscape and Pocket import/export, link checking, batch updates, thumbnails and configuration"
requires-python = ">=3.10"
keywords = ["bookmarks", "bookmark-manager", "netscape", "pocket", "thumbnails", "read-later"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Utilities",
]
dependencies = [
    "platformdirs",
    "beautifulsoup4",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["shiori"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
