"""Tests for SelfReferenceQualifier."""

import libcst as cst

from staticfier.core.self_reference_qualifier import SelfReferenceQualifier, build_qualifier


def _code(node: cst.CSTNode) -> str:
    return cst.Module(body=[]).code_for_node(node)


class TestBuildQualifier:
    def test_simple_class(self) -> None:
        qualifier = build_qualifier("Order")
        assert isinstance(qualifier, cst.Name)
        assert qualifier.value == "Order"

    def test_nested_class(self) -> None:
        assert _code(build_qualifier("Outer.Middle.Inner")) == "Outer.Middle.Inner"


class TestSelfReferenceQualifier:
    def test_replaces_recorded_receiver(self) -> None:
        receiver = cst.Name("self")
        qualifier = SelfReferenceQualifier()
        qualifier.enter([receiver], "Order")

        result = qualifier.qualify(receiver, receiver)

        assert _code(result) == "Order"

    def test_leaves_other_names_alone(self) -> None:
        receiver = cst.Name("self")
        other = cst.Name("self")
        qualifier = SelfReferenceQualifier()
        qualifier.enter([receiver], "Order")

        assert qualifier.qualify(other, other) is other

    def test_keeps_parentheses(self) -> None:
        receiver = cst.Name(
            "self", lpar=[cst.LeftParen()], rpar=[cst.RightParen()]
        )
        qualifier = SelfReferenceQualifier()
        qualifier.enter([receiver], "Outer.Inner")

        assert _code(qualifier.qualify(receiver, receiver)) == "(Outer.Inner)"

    def test_innermost_frame_wins(self) -> None:
        outer_receiver = cst.Name("self")
        inner_receiver = cst.Name("self")
        qualifier = SelfReferenceQualifier()
        qualifier.enter([outer_receiver], "Outer")
        qualifier.enter([inner_receiver], "Outer.Inner")

        assert _code(qualifier.qualify(inner_receiver, inner_receiver)) == "Outer.Inner"
        assert _code(qualifier.qualify(outer_receiver, outer_receiver)) == "Outer"

        qualifier.exit()

        assert qualifier.qualify(inner_receiver, inner_receiver) is inner_receiver
        assert _code(qualifier.qualify(outer_receiver, outer_receiver)) == "Outer"

    def test_nothing_survives_exit(self) -> None:
        receiver = cst.Name("self")
        qualifier = SelfReferenceQualifier()
        qualifier.enter([receiver], "Order")
        qualifier.exit()

        assert qualifier.qualify(receiver, receiver) is receiver
