"""Tests for hateblock.lexicon: keyword matching and term list loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from hateblock.lexicon import DEFAULT_KEYWORDS, KeywordFilter, load_keywords


@pytest.fixture
def keyword_filter() -> KeywordFilter:
    return KeywordFilter()


# -----------------------------------------------------------------------
# matches
# -----------------------------------------------------------------------


class TestMatches:
    """Case-insensitive substring membership."""

    def test_detects_marker_term(self, keyword_filter: KeywordFilter):
        assert keyword_filter.matches("You are an idiot") is True

    def test_any_case(self, keyword_filter: KeywordFilter):
        assert keyword_filter.matches("YOU ARE AN IDIOT") is True
        assert keyword_filter.matches("You Are An IdIoT") is True

    def test_substring_match_inside_word(self, keyword_filter: KeywordFilter):
        # Substring semantics: "hateful" contains "hate".
        assert keyword_filter.matches("such a hateful remark") is True

    def test_clean_text(self, keyword_filter: KeywordFilter):
        assert keyword_filter.matches("What a lovely afternoon.") is False

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_empty_and_whitespace_never_match(self, keyword_filter: KeywordFilter, text: str):
        assert keyword_filter.matches(text) is False

    def test_first_match_reports_term(self, keyword_filter: KeywordFilter):
        assert keyword_filter.first_match("total SCUM") == "scum"
        assert keyword_filter.first_match("nothing here") is None


# -----------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------


class TestConfiguration:
    """Replaceable term lists."""

    def test_default_terms_loaded(self, keyword_filter: KeywordFilter):
        assert keyword_filter.terms == DEFAULT_KEYWORDS

    def test_custom_terms_replace_defaults(self):
        custom = KeywordFilter(["Troll", "spam"])
        assert custom.matches("you troll") is True
        assert custom.matches("You are an idiot") is False

    def test_terms_normalised_and_deduplicated(self):
        custom = KeywordFilter(["  Troll ", "troll", "", "SPAM"])
        assert custom.terms == ("troll", "spam")

    def test_empty_term_list_matches_nothing(self):
        assert KeywordFilter([]).matches("idiot") is False

    def test_load_keywords_skips_comments_and_blanks(self, tmp_path: Path):
        path = tmp_path / "terms.txt"
        path.write_text("# insults\nidiot\n\n  moron  \n# end\n", encoding="utf-8")
        assert load_keywords(path) == ["idiot", "moron"]

    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "terms.txt"
        path.write_text("troll\n", encoding="utf-8")
        custom = KeywordFilter.from_file(path)
        assert custom.terms == ("troll",)
        assert custom.matches("Troll detected") is True
