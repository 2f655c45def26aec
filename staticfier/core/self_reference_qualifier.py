"""Replace instance-parameter receivers with a reference to the class.

Once a method is static, ``self.LIMIT`` must be spelled ``Order.LIMIT``. The
qualifier keeps one frame per method being rewritten; a name is replaced only
when its original node was recorded in a frame that is still open, so
receivers of one method can never be qualified with the class of another.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import libcst as cst


@dataclass(frozen=True)
class _QualificationFrame:
    receivers: frozenset[cst.Name]
    qualified_name: str


def build_qualifier(qualified_name: str) -> cst.BaseExpression:
    """Build the expression naming a class, e.g. ``Outer.Inner``.

    Args:
        qualified_name: Dotted class name

    Returns:
        A Name, or a chain of Attribute nodes for nested classes
    """
    parts = qualified_name.split(".")
    expr: cst.BaseExpression = cst.Name(parts[0])
    for part in parts[1:]:
        expr = cst.Attribute(value=expr, attr=cst.Name(part))
    return expr


class SelfReferenceQualifier:
    """Scoped substitution of instance-parameter receivers.

    Usage example (inside a transformer):
        qualifier.enter(references.self_receivers, model.qualified_name)
        ...  # leave_Name calls qualifier.qualify(original_node, updated_node)
        qualifier.exit()
    """

    def __init__(self) -> None:
        self._frames: list[_QualificationFrame] = []

    def enter(self, receivers: Iterable[cst.Name], qualified_name: str) -> None:
        """Open a frame for a method being rewritten.

        Args:
            receivers: Original Name nodes of the method's instance-parameter receivers
            qualified_name: Qualified name of the method's declaring class
        """
        self._frames.append(_QualificationFrame(frozenset(receivers), qualified_name))

    def exit(self) -> None:
        """Close the innermost frame."""
        self._frames.pop()

    def qualify(self, original: cst.Name, updated: cst.Name) -> cst.BaseExpression:
        """Return the replacement for a name, or the name itself.

        Args:
            original: The name as it appears in the analyzed tree
            updated: The name as produced by the transformation so far

        Returns:
            The class reference (keeping the name's parentheses) if original is
            a recorded receiver, otherwise updated
        """
        qualified_name = self._lookup(original)
        if qualified_name is None:
            return updated
        return build_qualifier(qualified_name).with_changes(lpar=updated.lpar, rpar=updated.rpar)

    def _lookup(self, original: cst.Name) -> Optional[str]:
        for frame in reversed(self._frames):
            if original in frame.receivers:
                return frame.qualified_name
        return None
