"""Tests for annotation pattern assembly and matching."""

import re
import time

import pytest

from sibylline_annotations.patterns import AnnotationPattern, RawMatch, escape_delimiter
from sibylline_annotations.syntax import CommentSyntax


def delimited(*delimiters):
    return CommentSyntax(single_line_delimiters=tuple(delimiters))


class TestEscapeDelimiter:
    @pytest.mark.parametrize(
        "delimiter",
        [".", "*", "+", "?", "^", "$", "{", "}", "(", ")", "|", "[", "]", "\\", "(*", "{-", "--[["],
    )
    def test_metacharacters_match_literally(self, delimiter):
        assert re.fullmatch(escape_delimiter(delimiter), delimiter)

    def test_no_metacharacter_interpretation(self):
        assert re.search(escape_delimiter("a.b"), "axb") is None
        assert re.search(escape_delimiter("a.b"), "a.b") is not None

    def test_slashes_match_only_at_double_slash(self):
        match = re.search(escape_delimiter("//"), "a/b//c note")
        assert match.start() == 3

    def test_empty_delimiter_rejected(self):
        with pytest.raises(ValueError):
            escape_delimiter("")


class TestDelimitedPattern:
    def test_hash_comment_after_code(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        matches = list(pattern.find_all("x = 1  # @todo fix this"))
        assert matches == [
            RawMatch(full_text="# @todo fix this", captured_body="todo fix this", start_offset=7)
        ]
        assert matches[0].length == 16

    def test_match_starts_at_delimiter_not_earlier_slash(self):
        pattern = AnnotationPattern.build(delimited("//"), "@")
        (match,) = pattern.find_all("a/b// @note here")
        assert match.start_offset == 3

    def test_multiple_delimiters_each_match(self):
        pattern = AnnotationPattern.build(delimited("--", "//"), "@")
        text = "select 1 -- @first a\nlet x // @second b\n"
        bodies = [m.captured_body for m in pattern.find_all(text)]
        assert bodies == ["first a", "second b"]

    def test_repeated_delimiter(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        (match,) = pattern.find_all("### @section intro")
        assert match.start_offset == 0
        assert match.captured_body == "section intro"

    def test_whitespace_required_between_delimiter_and_prefix(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        assert list(pattern.find_all("#@todo x")) == []

    def test_does_not_cross_lines(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        assert list(pattern.find_all("#\n@todo x")) == []

    def test_tab_separator(self):
        pattern = AnnotationPattern.build(delimited("//"), "@")
        (match,) = pattern.find_all("//\t@todo x")
        assert match.captured_body == "todo x"

    def test_case_insensitive_prefix(self):
        pattern = AnnotationPattern.build(delimited("#"), "@note")
        bodies = [m.captured_body for m in pattern.find_all("# @Note a\n# @NOTE b\n# @note c")]
        assert bodies == [" a", " b", " c"]

    def test_repeated_single_character_prefix(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        (match,) = pattern.find_all("# @@note x")
        assert match.captured_body == "note x"

    def test_repeated_multi_character_prefix(self):
        pattern = AnnotationPattern.build(delimited("//"), "@ei-")
        (match,) = pattern.find_all("// @ei-@ei-entity User")
        assert match.captured_body == "entity User"

    def test_prefix_metacharacters_escaped(self):
        pattern = AnnotationPattern.build(delimited("#"), "$.")
        assert [m.captured_body for m in pattern.find_all("# $. a\n# $x b")] == [" a"]

    def test_metacharacter_delimiter(self):
        pattern = AnnotationPattern.build(delimited("(*"), "@")
        (match,) = pattern.find_all("let x = 1 (* @todo check *)")
        assert match.captured_body == "todo check *)"

    def test_crlf_line_endings(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        matches = list(pattern.find_all("# @a 1\r\n# @b 2\r\n"))
        assert [m.full_text for m in matches] == ["# @a 1", "# @b 2"]
        assert matches[1].start_offset == 8

    def test_no_trailing_newline_needed(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        (match,) = pattern.find_all("code\n# @last item")
        assert match.captured_body == "last item"

    @pytest.mark.parametrize(
        "text, start",
        [("---- @a x", 0), ("--- @a x", 1), ("x----- @a x", 2), ("-- -- @a x", 3)],
    )
    def test_delimiter_runs(self, text, start):
        pattern = AnnotationPattern.build(delimited("--"), "@")
        (match,) = pattern.find_all(text)
        assert match.start_offset == start
        assert match.captured_body == "a x"

    @pytest.mark.parametrize("delimiters", [("--",), ("#",), ("--", "//"), ("REM",)])
    def test_long_delimiter_run_is_linear(self, delimiters):
        pattern = AnnotationPattern.build(delimited(*delimiters), "@")
        text = delimiters[0] * 20000 + "  no marker\n" + delimiters[-1] + " @end"
        started = time.perf_counter()
        matches = list(pattern.find_all(text))
        assert time.perf_counter() - started < 1.0
        assert [m.captured_body for m in matches] == ["end"]

    def test_requires_delimiter(self):
        with pytest.raises(ValueError):
            AnnotationPattern.build(CommentSyntax(), "@")


class TestPlainTextPattern:
    def test_prefix_at_line_start(self):
        pattern = AnnotationPattern.build(CommentSyntax.plain_text(), "@")
        text = "@todo a\n  @done b\nsome @mid c\n"
        matches = list(pattern.find_all(text))
        assert [m.captured_body for m in matches] == ["todo a", "done b"]
        assert [m.start_offset for m in matches] == [0, 8]
        assert matches[1].full_text == "  @done b"

    def test_mid_line_marker_does_not_match(self):
        pattern = AnnotationPattern.build(CommentSyntax.plain_text(), "@")
        assert list(pattern.find_all("see @todo later")) == []

    def test_case_insensitive(self):
        pattern = AnnotationPattern.build(CommentSyntax.plain_text(), "@note")
        assert len(list(pattern.find_all("@NOTE a\n@Note b"))) == 2


class TestFindAll:
    def test_is_lazy(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        result = pattern.find_all("# @a")
        assert iter(result) is result

    def test_is_restartable(self):
        pattern = AnnotationPattern.build(delimited("#"), "@")
        text = "# @a 1\nx = 2  # @b 2\n"
        assert list(pattern.find_all(text)) == list(pattern.find_all(text))

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            AnnotationPattern.build(delimited("#"), "")

    def test_source_exposed(self):
        pattern = AnnotationPattern.build(delimited("//", "#"), "@")
        assert "//" in pattern.source
        assert pattern.prefix == "@"
