"""Shared fixtures: encoded chapter pages and fakes for the retrieval layer."""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import ChapterFetcher
from selenium.common.exceptions import WebDriverException

from ChapterFetcher import NetworkError, RawDocument


def make_chapter_page(title: str, content: str) -> str:
    """Build a page the way the source site serves it: title in <h2>, text in script-x."""
    payload = ChapterFetcher.obfuscate_payload(content)
    return (
        '<html><head><title>Doc truyen</title></head><body>'
        f'<div class="chapter-header"><h2 class="title"><a href="#">{title}</a></h2></div>'
        '<div id="chapter-content"></div>'
        f'<script id="script-x">var data_x = "{payload}"; renderChapter(data_x);</script>'
        '</body></html>'
    )


# The payload decodes to 0xFF bytes, which is not a valid zlib, gzip or deflate stream.
MALFORMED_PAGE = (
    '<html><body><h2>Chương 2</h2>'
    '<script id="script-x">var data_x = "________";</script>'
    '</body></html>'
)


class FakeRetriever:
    """Serves canned pages.

    Strings are served as encoded pages, RawDocument values as they are and
    Exception values are raised.
    """

    def __init__(self, pages):
        self.pages = pages
        self.fetched = []
        self.closed = False

    def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise NetworkError(f"Request to {url} failed: 404")
        if isinstance(page, RawDocument):
            return page
        return RawDocument(url=url, html=page, encoded=True)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


class FakeElement:
    def __init__(self, text="", inner=""):
        self.attributes = {"textContent": text, "innerHTML": inner}

    def get_attribute(self, name):
        return self.attributes.get(name)


class FakeDriver:
    """Stands in for a selenium driver; ``pages`` maps URL to title and elements."""

    def __init__(self, pages, fail_on=None):
        self.pages = pages
        self.fail_on = fail_on or set()
        self.visited = []
        self.current = {}
        self.quit_calls = 0

    @property
    def title(self):
        if self.current.get("crashed"):
            raise WebDriverException("tab crashed")
        return self.current.get("title", "")

    def get(self, url):
        self.visited.append(url)
        if url in self.fail_on:
            raise WebDriverException("net::ERR_NAME_NOT_RESOLVED")
        self.current = self.pages[url]

    def find_elements(self, by, value):
        return self.current.get("elements", {}).get(value, [])

    def quit(self):
        self.quit_calls += 1


def rendered_page(title, inner):
    return {"title": title, "elements": {"h2": [FakeElement(text=title)], ".box-chap": [FakeElement(inner=inner)]}}
