"""Unit tests for YAML extraction profiles."""

from __future__ import annotations

import pytest

PROFILE = """\
default:
  min_content_chars: 50
  message_timeout: 2.5
domains:
  example.com:
    max_content_chars: 5000
  news.example.com:
    max_content_chars: 800
  other.org:
    min_content_chars: 10
"""


@pytest.fixture
def profile_path(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(PROFILE, encoding="utf-8")
    return path


class TestLoadProfile:
    def test_default_only(self, profile_path):
        from webclip.profiles import load_profile

        assert load_profile(profile_path, "https://unknown.net/a") == {
            "min_content_chars": 50,
            "message_timeout": 2.5,
        }

    def test_longest_domain_wins(self, profile_path):
        from webclip.profiles import load_profile

        cfg = load_profile(profile_path, "https://news.example.com/story")
        assert cfg["max_content_chars"] == 800
        assert cfg["min_content_chars"] == 50

    def test_subdomain_matches_parent(self, profile_path):
        from webclip.profiles import load_profile

        assert load_profile(profile_path, "https://blog.example.com/")["max_content_chars"] == 5000

    def test_suffix_without_dot_does_not_match(self, profile_path):
        from webclip.profiles import load_profile

        assert "max_content_chars" not in load_profile(profile_path, "https://notexample.com/")

    def test_empty_file(self, tmp_path):
        from webclip.profiles import load_profile

        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_profile(path, "https://example.com") == {}


class TestOptionsFor:
    def test_without_profile(self):
        from webclip import settings
        from webclip.profiles import options_for

        opts = options_for("https://example.com")
        assert opts.min_content_chars == settings.MIN_CONTENT_CHARS
        assert opts.max_content_chars is None

    def test_with_profile(self, profile_path):
        from webclip.profiles import options_for

        opts = options_for("https://other.org/x", profile_path)
        assert opts.min_content_chars == 10
        assert opts.message_timeout == 2.5

    def test_invalid_value_rejected(self, tmp_path):
        from pydantic import ValidationError

        from webclip.profiles import options_for

        path = tmp_path / "bad.yaml"
        path.write_text("default:\n  max_content_chars: 0\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            options_for("https://example.com", path)

    def test_unknown_keys_ignored(self, tmp_path):
        from webclip.profiles import options_for

        path = tmp_path / "extra.yaml"
        path.write_text("default:\n  render_js: true\n", encoding="utf-8")
        assert options_for("https://example.com", path).min_content_chars >= 0
