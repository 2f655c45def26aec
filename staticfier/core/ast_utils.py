"""Shared utility functions for target parsing."""

from typing import Optional, Tuple

TARGET_SEPARATOR = "::"


def parse_target(target: str, expected_parts: int = 2) -> Tuple[str, ...]:
    """Parse target in 'ClassName::method_name' format.

    Args:
        target: Target string
        expected_parts: Number of parts expected (default: 2)

    Returns:
        Tuple of target parts

    Raises:
        ValueError: If format is invalid
    """
    parts = target.split(TARGET_SEPARATOR)
    if len(parts) != expected_parts or not all(parts):
        raise ValueError(
            f"Invalid target format '{target}'. "
            f"Expected {expected_parts} parts separated by '{TARGET_SEPARATOR}'"
        )
    return tuple(parts)


def parse_method_target(target: str) -> Tuple[str, Optional[str]]:
    """Parse a target naming a class or one of its methods.

    Accepts 'ClassName', 'ClassName::method_name', and dotted class names for
    nested classes ('Outer.Inner::method_name').

    Args:
        target: Target string

    Returns:
        Tuple of (class_name, method_name); method_name is None for class targets

    Raises:
        ValueError: If format is invalid
    """
    if TARGET_SEPARATOR in target:
        class_name, method_name = parse_target(target, expected_parts=2)
        return class_name, method_name
    (class_name,) = parse_target(target, expected_parts=1)
    return class_name, None

