"""Decorator handling utilities for the static method rewrite.

A method's decorators play the role of its modifier list: ``@staticmethod`` and
``@classmethod`` make it type-level, ``@final`` marks it as not overridable, and
anything else wraps the function in a way the rewrite cannot reason about.

Key patterns:
- Adding ``@staticmethod`` happens at most once; a method that already carries a
  static decorator is returned unchanged
- A ``@final`` decorator is replaced in place so the surrounding comments and
  blank lines stay where they were
- Without ``@final`` the new decorator goes after the existing ones
"""

from typing import Sequence

import libcst as cst


class DecoratorHandler:
    """Classifies and rewrites the decorators of a method.

    Usage example:
        handler = DecoratorHandler(method)
        if handler.is_static():
            return method
        decorators = DecoratorHandler.add_static_decorator(method.decorators)
    """

    STATIC_DECORATORS = {"staticmethod", "classmethod"}
    FINAL_DECORATORS = {"final"}
    STATIC_DECORATOR_NAME = "staticmethod"

    def __init__(self, method: cst.FunctionDef) -> None:
        """Initialize handler with a method definition.

        Args:
            method: The function definition whose decorators are inspected
        """
        self.method = method

    def decorator_names(self) -> list[str]:
        """Get the names of all decorators, in declaration order."""
        return [self._extract_decorator_name(d) for d in self.method.decorators]

    def is_static(self) -> bool:
        """Check if the method is already a static or class method.

        Returns:
            True if the method has @staticmethod or @classmethod
        """
        return any(name in self.STATIC_DECORATORS for name in self.decorator_names())

    def unsupported_decorators(self) -> list[str]:
        """List decorators that are neither static nor final.

        Returns:
            Decorator names (empty string for expressions without a name)
        """
        known = self.STATIC_DECORATORS | self.FINAL_DECORATORS
        return [name for name in self.decorator_names() if name not in known]

    @classmethod
    def add_static_decorator(
        cls, decorators: Sequence[cst.Decorator]
    ) -> tuple[cst.Decorator, ...]:
        """Add @staticmethod to a decorator list, removing @final if present.

        Args:
            decorators: Existing decorators in declaration order

        Returns:
            Tuple of decorators containing exactly one static decorator
        """
        names = [cls._extract_decorator_name(d) for d in decorators]
        if any(name in cls.STATIC_DECORATORS for name in names):
            return tuple(decorators)

        new_decorators = list(decorators)
        for index, name in enumerate(names):
            if name in cls.FINAL_DECORATORS:
                final_decorator = new_decorators.pop(index)
                new_decorators.insert(
                    index,
                    final_decorator.with_changes(decorator=cst.Name(cls.STATIC_DECORATOR_NAME)),
                )
                return tuple(new_decorators)

        new_decorators.append(cst.Decorator(decorator=cst.Name(cls.STATIC_DECORATOR_NAME)))
        return tuple(new_decorators)

    @staticmethod
    def _extract_decorator_name(decorator: cst.Decorator) -> str:
        """Extract the name of a decorator.

        Handles simple decorators like @final and dotted ones like
        @typing.final.

        Args:
            decorator: The decorator node

        Returns:
            The decorator name, or empty string if can't be extracted
        """
        if isinstance(decorator.decorator, cst.Name):
            return decorator.decorator.value
        elif isinstance(decorator.decorator, cst.Attribute):
            return decorator.decorator.attr.value
        elif isinstance(decorator.decorator, cst.Call):
            # Handle @decorator(...) patterns
            if isinstance(decorator.decorator.func, cst.Name):
                return decorator.decorator.func.value
            elif isinstance(decorator.decorator.func, cst.Attribute):
                return decorator.decorator.func.attr.value
        return ""
