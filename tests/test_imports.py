"""Tests for the import block model."""

from dart_data_class.parsers.imports import ImportBlock

MIXED = """\
// Copyright header
library models;

import 'package:my_app/util.dart';
import '../local.dart';
export 'src/api.dart';
import 'package:http/http.dart';
part 'user.g.dart';
import 'dart:io';
import 'dart:async';

class User {}
"""


class TestParse:
    def test_block_range_skips_leading_comments_and_library(self):
        block = ImportBlock.parse(MIXED)
        assert block.start_line == 4
        assert block.end_line == 10
        assert len(block.values) == 7

    def test_no_directives(self):
        block = ImportBlock.parse("class A {}\n")
        assert not block.has_imports
        assert not block.has_previous_imports
        assert block.format() == ""

    def test_comment_between_directives_ends_block(self):
        block = ImportBlock.parse("import 'a.dart';\n// note\nimport 'b.dart';\n")
        assert block.values == ["import 'a.dart';"]
        assert block.end_line == 1

    def test_multi_line_directive(self):
        block = ImportBlock.parse("import 'package:a/a.dart'\n    show A;\n\nclass X {}")
        assert block.values == ["import 'package:a/a.dart' show A;"]
        assert (block.start_line, block.end_line) == (1, 2)


class TestFormat:
    def test_platform_imports_first(self):
        block = ImportBlock.parse("import 'package:flutter/material.dart';\nimport 'dart:async';")
        assert block.format() == (
            "import 'dart:async';\n"
            "\n"
            "import 'package:flutter/material.dart';"
        )

    def test_six_buckets_in_order(self):
        block = ImportBlock.parse(MIXED)
        assert block.format("my_app") == (
            "import 'dart:async';\n"
            "import 'dart:io';\n"
            "\n"
            "import 'package:http/http.dart';\n"
            "\n"
            "import 'package:my_app/util.dart';\n"
            "\n"
            "import '../local.dart';\n"
            "\n"
            "export 'src/api.dart';\n"
            "\n"
            "part 'user.g.dart';"
        )

    def test_without_workspace_project_imports_are_third_party(self):
        formatted = ImportBlock.parse(MIXED).format()
        assert "import 'package:http/http.dart';\nimport 'package:my_app/util.dart';" in formatted

    def test_workspace_prefix_must_be_a_whole_package(self):
        block = ImportBlock.parse("import 'package:my_app_core/a.dart';\nimport 'package:zed/z.dart';")
        assert block.format("my_app") == (
            "import 'package:my_app_core/a.dart';\n"
            "import 'package:zed/z.dart';"
        )

    def test_format_is_idempotent(self):
        once = ImportBlock.parse(MIXED).format("my_app")
        twice = ImportBlock.parse(once).format("my_app")
        assert once == twice

    def test_should_change(self):
        assert ImportBlock.parse(MIXED).should_change("my_app")
        formatted = ImportBlock.parse(MIXED).format("my_app")
        assert not ImportBlock.parse(formatted).should_change("my_app")


class TestRequiresImport:
    def test_adds_package_once(self):
        block = ImportBlock.parse("import 'dart:async';")
        block.requires_import("dart:convert")
        block.requires_import("import 'dart:convert';")
        assert block.values == ["import 'dart:async';", "import 'dart:convert';"]

    def test_valid_override_suppresses(self):
        block = ImportBlock.parse("import 'package:flutter/material.dart';")
        block.requires_import(
            "package:flutter/foundation.dart",
            ["package:flutter/material.dart", "package:flutter/widgets.dart"],
        )
        assert block.values == ["import 'package:flutter/material.dart';"]


class TestTrailingComments:
    SOURCE = "import 'dart:async'; // timers\n\nclass A {\n  final int a;\n}\n"

    def test_comment_does_not_extend_the_directive(self):
        block = ImportBlock.parse(self.SOURCE)
        assert block.values == ["import 'dart:async'; // timers"]
        assert (block.start_line, block.end_line) == (1, 1)
        assert not block.should_change()

    def test_commented_import_counts_as_present(self):
        block = ImportBlock.parse(self.SOURCE)
        block.requires_import("dart:async")
        assert block.values == ["import 'dart:async'; // timers"]

    def test_comment_inside_multi_line_directive_moves_to_the_end(self):
        block = ImportBlock.parse("import 'package:a/a.dart' // only A\n    show A;\n")
        assert block.values == ["import 'package:a/a.dart' show A; // only A"]

    def test_unterminated_directive_stops_at_a_blank_line(self):
        block = ImportBlock.parse("import 'dart:io';\nimport 'a.dart'\n\nclass A {\n  final int a;\n}\n")
        assert block.values == ["import 'dart:io';"]
        assert (block.start_line, block.end_line) == (1, 1)

    def test_unterminated_directive_does_not_swallow_code(self):
        block = ImportBlock.parse("import 'a.dart'\nclass A {}\n")
        assert not block.has_imports
        assert not block.has_previous_imports

    def test_conditional_import_continues(self):
        block = ImportBlock.parse("import 'stub.dart'\n    if (dart.library.io) 'io.dart';\n")
        assert block.values == ["import 'stub.dart' if (dart.library.io) 'io.dart';"]
