"""Base class for libcst transformers with class/method context tracking.

This module provides ClassAwareTransformer, a base class that extends libcst.CSTTransformer
to provide automatic tracking of class and method context during tree traversal.
"""

from typing import Optional, Union

import libcst as cst


class ClassAwareTransformer(cst.CSTTransformer):
    """Base transformer that tracks class and method context during traversal.

    The context is a stack of the enclosing class and function definitions, so
    nested classes and functions defined inside methods are tracked correctly.
    Subclasses that override visit_/leave_ methods for ClassDef or FunctionDef
    must call the base implementation.

    Attributes:
        class_name: Optional class name to match (simple or dotted qualified name)
        function_name: Optional method name to match
    """

    def __init__(self, class_name: Optional[str] = None, function_name: Optional[str] = None):
        """Initialize the transformer with optional target class and function names.

        Args:
            class_name: Restrict matches to methods of this class. If None, any
                       class matches.
            function_name: Restrict matches to methods with this name. If None,
                          any method matches.
        """
        self.class_name = class_name
        self.function_name = function_name
        self._scope_stack: list[Union[cst.ClassDef, cst.FunctionDef]] = []

    @property
    def current_class(self) -> Optional[str]:
        """The name of the innermost class being visited (None at module level)."""
        node = self.current_class_node
        return node.name.value if node is not None else None

    @property
    def current_class_node(self) -> Optional[cst.ClassDef]:
        """The innermost ClassDef node being visited."""
        for node in reversed(self._scope_stack):
            if isinstance(node, cst.ClassDef):
                return node
        return None

    @property
    def current_qualified_class(self) -> Optional[str]:
        """The dotted name of the innermost class, e.g. ``Outer.Inner``.

        The chain stops at the nearest enclosing function, since a class defined
        inside a function is only reachable by its own name there.
        """
        names: list[str] = []
        for node in reversed(self._scope_stack):
            if isinstance(node, cst.ClassDef):
                names.append(node.name.value)
            elif names:
                break
        return ".".join(reversed(names)) if names else None

    def is_method(self) -> bool:
        """Check if the function being visited is defined directly in a class body."""
        return (
            len(self._scope_stack) >= 2
            and isinstance(self._scope_stack[-1], cst.FunctionDef)
            and isinstance(self._scope_stack[-2], cst.ClassDef)
        )

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:  # noqa: N802
        """Track when entering a class definition.

        Args:
            node: The ClassDef node being visited

        Returns:
            True to continue traversal
        """
        self._scope_stack.append(node)
        return True

    def leave_ClassDef(  # noqa: N802
        self, original_node: cst.ClassDef, updated_node: cst.ClassDef
    ) -> cst.ClassDef:
        """Track when leaving a class definition.

        Args:
            original_node: The original ClassDef node
            updated_node: The updated ClassDef node

        Returns:
            The updated ClassDef node
        """
        self._scope_stack.pop()
        return updated_node

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:  # noqa: N802
        """Track when entering a function or method definition."""
        self._scope_stack.append(node)
        return True

    def leave_FunctionDef(  # noqa: N802
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.FunctionDef:
        """Track when leaving a function or method definition."""
        self._scope_stack.pop()
        return updated_node

    def matches_target(self) -> bool:
        """Check if the method being visited matches the target class and function names.

        This method should be called while the method is on the context stack
        (from visit_FunctionDef after the base call, or from leave_FunctionDef
        before it).

        Returns:
            True if the current method is a class method matching class_name and
            function_name, False otherwise.
        """
        if not self.is_method():
            return False

        if self.class_name is not None and self.class_name not in (
            self.current_class,
            self.current_qualified_class,
        ):
            return False

        method = self._scope_stack[-1]
        if self.function_name is not None and method.name.value != self.function_name:
            return False
        return True
