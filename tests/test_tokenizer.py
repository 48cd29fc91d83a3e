"""Tests for the code-only tokenizer."""

from dart_data_class.parsers.tokenizer import code_lines, code_view, split_top_level


class TestCodeView:
    def test_strips_comments_and_string_bodies(self):
        source = "var s = '{'; // }\n/* { */ x"
        assert code_view(source) == "var s = ''; \n x"

    def test_keeps_line_count(self):
        source = "a\n'''multi\nline\n{'''\n/* block\ncomment */\nb"
        assert len(code_lines(source)) == len(source.split('\n'))
        assert code_lines(source)[-1] == 'b'

    def test_interpolation_is_part_of_the_string(self):
        assert code_view("'a${b['c']}d' {") == "'' {"

    def test_raw_strings_ignore_escapes(self):
        assert code_view(r"r'\' {") == "'' {"

    def test_identifier_ending_in_r_is_not_a_raw_string(self):
        assert code_view("bar'{'") == "bar''"


class TestSplitTopLevel:
    def test_ignores_nested_commas(self):
        assert split_top_level('Map<String, int>, List<T>') == ['Map<String, int>', 'List<T>']

    def test_custom_separator(self):
        assert split_top_level(' final int a; final Map<A, B> b; ', ';') == [
            'final int a', 'final Map<A, B> b',
        ]
