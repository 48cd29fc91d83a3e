"""End-to-end tests: generate edits for a document and apply them."""

import pytest

from dart_data_class import generate_data_classes, run
from dart_data_class.config import GeneratorConfig
from dart_data_class.document import TextDocument
from dart_data_class.generator import NO_CLASSES_NOTICE
from dart_data_class.generators.members import generate_members
from dart_data_class.models import IssueKind
from dart_data_class.parsers.imports import ImportBlock
from dart_data_class.parsers.scanner import scan_classes
from dart_data_class.planner import plan_class

POINT = "class Point {\n  final int x;\n}\n"

POINT_GENERATED = """\
import 'dart:convert';

class Point {
  final int x;

  Point(this.x);

  Point copyWith({
    int? x,
  }) {
    return Point(
      x ?? this.x,
    );
  }

  Map<String, dynamic> toMap() {
    return <String, dynamic>{
      'x': x,
    };
  }

  factory Point.fromMap(Map<String, dynamic> map) {
    return Point(
      (map['x'] as num).toInt(),
    );
  }

  String toJson() => json.encode(toMap());

  factory Point.fromJson(String source) =>
      Point.fromMap(json.decode(source) as Map<String, dynamic>);

  @override
  String toString() => 'Point(x: $x)';

  @override
  bool operator ==(covariant Point other) {
    if (identical(this, other)) return true;

    return other.x == x;
  }

  @override
  int get hashCode => x.hashCode;
}
"""


def _generate(text, **kwargs):
    document = TextDocument(text)
    result = run(document, **kwargs)
    return document.get_text(), result


class TestFullGeneration:
    def test_point(self):
        text, result = _generate(POINT)
        assert text == POINT_GENERATED
        assert result.changed
        assert [c.name for c in result.classes] == ["Point"]

    def test_second_run_is_a_no_op(self):
        result = generate_data_classes(POINT_GENERATED)
        assert result.edits == []
        assert not result.changed

    def test_single_line_class_is_expanded(self):
        text, _ = _generate("class Foo { final String name; final int age; }")
        assert text.startswith("import 'dart:convert';\n\nclass Foo {\n  final String name;\n  final int age;\n\n  Foo(this.name, this.age);\n")
        assert text.endswith("}")
        assert generate_data_classes(text).edits == []

    def test_named_constructor_drives_arguments(self):
        source = (
            "class User {\n"
            "  final String name;\n"
            "  final int? age;\n"
            "\n"
            "  const User({\n"
            "    required this.name,\n"
            "    this.age,\n"
            "  });\n"
            "}\n"
        )
        text, _ = _generate(source)
        assert "      name: name ?? this.name," in text
        assert "      age: (map['age'] as num?)?.toInt()," in text
        assert "    String? name,\n    int? age,\n" in text
        assert "  const User({\n    required this.name,\n    this.age,\n  });" in text

    def test_existing_imports_are_regrouped(self):
        source = "import 'package:b/b.dart';\n\n" + POINT
        text, _ = _generate(source)
        assert text.startswith("import 'dart:convert';\n\nimport 'package:b/b.dart';\n\nclass Point {")


class TestIncrementalUpdates:
    SOURCE = (
        "class A {\n"
        "  final int a;\n"
        "\n"
        "  A(this.a);\n"
        "\n"
        "  @override\n"
        "  String toString() => 'A()';\n"
        "}\n"
        "\n"
        "void main() {}\n"
    )

    def test_stale_member_is_replaced_in_place(self):
        text, _ = _generate(self.SOURCE)
        assert "'A(a: $a)'" in text
        assert "'A()'" not in text
        assert text.count("String toString()") == 1
        assert text.endswith("}\n\nvoid main() {}\n")

    def test_edits_stay_inside_their_regions(self):
        result = generate_data_classes(self.SOURCE)
        for edit in result.edits:
            assert edit.end_line <= 8

    def test_no_override_keeps_existing_members(self):
        config = GeneratorConfig()
        config.override.existing = False
        text, _ = _generate(self.SOURCE, config=config)
        assert "'A()'" in text
        assert "Map<String, dynamic> toMap()" in text

    def test_constructor_with_initializer_list_is_untouched(self):
        source = "class A {\n  final int a;\n\n  A(this.a) : assert(a > 0);\n}\n"
        text, _ = _generate(source)
        assert "  A(this.a) : assert(a > 0);" in text
        assert "    return A(\n      a ?? this.a,\n    );" in text

    def test_disabled_members_are_not_generated(self):
        config = GeneratorConfig()
        config.members.to_string = False
        config.members.copy_with = False
        text, _ = _generate(POINT, config=config)
        assert "toString" not in text
        assert "copyWith" not in text
        assert "toMap" in text


class TestFlavours:
    LIST_CLASS = "class Bag {\n  final List<int> values;\n}\n"

    def test_collections_in_plain_dart(self):
        text, _ = _generate(self.LIST_CLASS, flutter=False)
        assert "import 'package:collection/collection.dart';" in text
        assert "const DeepCollectionEquality().equals(other.values, values)" in text
        assert "List<int>.from(map['values'] as List<dynamic>)" in text

    def test_collections_in_flutter(self):
        text, _ = _generate(self.LIST_CLASS, flutter=True)
        assert "import 'package:flutter/foundation.dart';" in text
        assert "listEquals(other.values, values)" in text

    def test_flutter_material_import_satisfies_foundation(self):
        source = "import 'package:flutter/material.dart';\n\n" + self.LIST_CLASS
        text, _ = _generate(source, flutter=True)
        assert "package:flutter/foundation.dart" not in text

    def test_equatable(self):
        config = GeneratorConfig()
        config.equatable.use_equatable = True
        text, _ = _generate(POINT, config=config)
        assert "import 'package:equatable/equatable.dart';" in text
        assert "class Point extends Equatable {" in text
        assert "  List<Object?> get props => [x];" in text
        assert "operator ==" not in text
        assert "hashCode" not in text

    def test_equatable_mixin_when_extending(self):
        config = GeneratorConfig()
        config.equatable.use_equatable = True
        source = "class Point extends Base {\n  final int x;\n}\n"
        text, _ = _generate(source, config=config)
        assert "class Point extends Base with EquatableMixin {" in text

    def test_widget_only_gets_a_constructor(self):
        source = (
            "class Card extends StatelessWidget {\n"
            "  final String title;\n"
            "\n"
            "  @override\n"
            "  Widget build(BuildContext context) => Text(title);\n"
            "}\n"
        )
        text, _ = _generate(source)
        assert "  const Card({\n    super.key,\n    required this.title,\n  });" in text
        assert "toMap" not in text
        assert "import" not in text

    def test_abstract_class_skips_factories(self):
        text, _ = _generate("abstract class Shape {\n  final double area;\n}\n")
        assert "copyWith" not in text
        assert "fromMap" not in text
        assert "Map<String, dynamic> toMap()" in text


class TestIssues:
    def test_state_class_is_reported(self):
        result = generate_data_classes("class _HomeState extends State<Home> {\n  final int count;\n}\n")
        assert result.edits == []
        assert result.issues[0].kind is IssueKind.NOT_CONVERTIBLE
        assert result.notice == NO_CLASSES_NOTICE

    def test_duplicate_names(self):
        result = generate_data_classes("class A {\n  final int id;\n  final int _id;\n}\n")
        assert result.issues[0].kind is IssueKind.DUPLICATE_NAMES
        assert result.edits == []

    def test_invalid_class_does_not_block_others(self):
        source = "class Empty {\n}\n\n" + POINT
        result = generate_data_classes(source)
        assert [c.name for c in result.classes] == ["Point"]
        assert result.issues[0].message.startswith("Empty couldn't be converted")
        assert result.edits

    def test_no_classes(self):
        result = generate_data_classes("void main() {}\n")
        assert result.notice == NO_CLASSES_NOTICE
        assert result.issues == []

    def test_target_class_names(self):
        source = POINT + "\nclass Other {\n  final int y;\n}\n"
        result = generate_data_classes(source, target_class_names=["Other"])
        assert [c.name for c in result.classes] == ["Other"]

    def test_verbose_output(self, capsys):
        generate_data_classes(POINT, verbose=True)
        assert "[generate] Point: 1 fields" in capsys.readouterr().out


@pytest.mark.parametrize("newline", ["\n", "\r\n"])
def test_line_endings_are_preserved(newline):
    text, _ = _generate(POINT.replace("\n", newline))
    assert text == POINT_GENERATED.replace("\n", newline)


class TestPlanner:
    def test_plan_class_orders_chunks(self):
        config = GeneratorConfig()
        for name in ("copy_with", "to_map", "from_map", "to_json", "from_json", "equality", "hash_code"):
            setattr(config.members, name, False)
        cls = generate_members(scan_classes(POINT)[0], ImportBlock(), config)
        assert plan_class(cls, POINT.split("\n")) == (
            "class Point {\n"
            "  final int x;\n"
            "\n"
            "  Point(this.x);\n"
            "\n"
            "  @override\n"
            "  String toString() => 'Point(x: $x)';\n"
            "}"
        )


class TestSourcePreservation:
    def test_import_with_trailing_comment(self):
        source = "import 'dart:async'; // timers\n\nclass A {\n  final int a;\n}\n"
        text, _ = _generate(source)
        assert text.startswith(
            "import 'dart:async'; // timers\n"
            "import 'dart:convert';\n"
            "\n"
            "class A {\n"
            "  final int a;\n"
            "\n"
            "  A(this.a);\n"
        )
        assert generate_data_classes(text).edits == []

    def test_function_typed_widget_field_keeps_its_parameter(self):
        source = (
            "class Btn extends StatelessWidget {\n"
            "  final String label;\n"
            "  final void Function(int) onTap;\n"
            "\n"
            "  const Btn({super.key, required this.label, required this.onTap});\n"
            "\n"
            "  @override\n"
            "  Widget build(BuildContext context) => Text(label);\n"
            "}\n"
        )
        text, _ = _generate(source)
        assert (
            "  const Btn({\n"
            "    super.key,\n"
            "    required this.label,\n"
            "    required this.onTap,\n"
            "  });"
        ) in text

    def test_unsupported_field_leaves_class_untouched(self):
        source = "class A {\n  final int a, b;\n\n  A(this.a, this.b);\n}\n"
        text, result = _generate(source)
        assert text == source
        assert result.issues[0].kind is IssueKind.UNSUPPORTED

    def test_code_on_the_header_line(self):
        text, _ = _generate("class A { final int a;\n  final int b;\n}\n")
        assert text.startswith(
            "import 'dart:convert';\n"
            "\n"
            "class A {\n"
            "  final int a;\n"
            "  final int b;\n"
            "\n"
            "  A(this.a, this.b);\n"
        )
        assert generate_data_classes(text).edits == []

    def test_comment_on_the_header_line(self):
        text, _ = _generate("class A { // keep\n  final int a;\n}\n")
        assert "\nclass A { // keep\n  final int a;\n" in text

    def test_single_line_class_keeps_late(self):
        text, _ = _generate("class A { late final int a; }")
        assert "class A {\n  late final int a;\n\n  A(this.a);\n" in text
