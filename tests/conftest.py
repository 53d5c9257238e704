"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ARTICLE_URL = "https://blog.example.com/posts/generators"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def sidebar_html() -> str:
    return _read_fixture("sidebar.html")


@pytest.fixture
def qiita_html() -> str:
    return _read_fixture("qiita.html")


@pytest.fixture
def batch_csv() -> Path:
    return FIXTURES_DIR / "batch.csv"


@pytest.fixture
def article_url() -> str:
    return ARTICLE_URL
