"""Tests for text helpers (utils/text.py) and the message catalog."""

from __future__ import annotations

import pytest

from ytd_bot import messages
from ytd_bot.utils.text import escape_html, sanitize_filename, truncate


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Normal Title", "Normal Title"),
            ('a/b\\c:d*e?f"g<h>i|j', "a_b_c_d_e_f_g_h_i_j"),
            ("tab\there\x00", "tabhere"),
            ("  .hidden.  ", "hidden"),
            ("...", ""),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        assert sanitize_filename(raw) == expected

    def test_unicode_preserved(self) -> None:
        assert sanitize_filename("Café – 東京") == "Café – 東京"


class TestEscapeHtml:
    def test_escapes_reserved(self) -> None:
        assert escape_html("<b>Tom & Jerry</b>") == "&lt;b&gt;Tom &amp; Jerry&lt;/b&gt;"

    def test_ampersand_first(self) -> None:
        assert escape_html("&lt;") == "&amp;lt;"


class TestTruncate:
    def test_short_text_untouched(self) -> None:
        assert truncate("abc", 10) == "abc"

    def test_exact_length_untouched(self) -> None:
        assert truncate("abcde", 5) == "abcde"

    def test_long_text_marked(self) -> None:
        result = truncate("abcdefghij", 5)
        assert result == "abcd…"
        assert len(result) == 5

    def test_non_positive_limit(self) -> None:
        assert truncate("abc", 0) == ""


class TestMessages:
    def test_admin_sections_only_for_admin(self) -> None:
        assert "/stats" in messages.welcome(True)
        assert "/stats" not in messages.welcome(False)
        assert "/broadcast" in messages.help_text(True)
        assert "/broadcast" not in messages.help_text(False)

    def test_user_text_is_escaped(self) -> None:
        html = messages.feedback_notification("<evil>", 1, "a < b & c")
        assert "<evil>" not in html
        assert "a &lt; b &amp; c" in html
        assert "&lt;evil&gt;" in html

    def test_announcement_escapes(self) -> None:
        assert "&lt;script&gt;" in messages.announcement("<script>")

    def test_stats_without_searches(self) -> None:
        text = messages.stats(3, 1, 2, 0, ())
        assert "Total Users: 3" in text
        assert "No searches yet" in text

    def test_stats_with_searches(self) -> None:
        text = messages.stats(3, 1, 2, 4, (("lofi", 2),))
        assert '"lofi" (2)' in text
        assert "Pending Feedback: 4" in text

    @pytest.mark.parametrize(
        ("username", "first_name", "expected"),
        [
            ("ann", "Ann", "@ann"),
            (None, "Ann", "Ann"),
            (None, None, "User 5"),
        ],
    )
    def test_user_label(
        self, username: str | None, first_name: str | None, expected: str,
    ) -> None:
        assert messages.user_label(5, username, first_name) == expected

    def test_still_working(self) -> None:
        assert "15s" in messages.still_working(15)
