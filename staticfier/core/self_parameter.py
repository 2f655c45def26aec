"""Helpers for the implicit instance parameter of a method."""

from typing import Optional

import libcst as cst


def first_positional_parameter(params: cst.Parameters) -> Optional[cst.Param]:
    """Return the parameter that receives the instance, if the method has one.

    Args:
        params: Parameters of the method

    Returns:
        The first positional-only or positional parameter, or None when the
        signature starts with ``*args`` or is empty
    """
    if params.posonly_params:
        return params.posonly_params[0]
    if params.params:
        return params.params[0]
    return None


def remove_self_parameter(params: cst.Parameters) -> cst.Parameters:
    """Drop the instance parameter from a method signature.

    The positional-only marker is removed as well when no positional-only
    parameter is left, since ``def f(/, x)`` is not valid Python.

    Args:
        params: Parameters of the method

    Returns:
        The parameters without the first positional one

    Raises:
        ValueError: If the signature has no positional parameter
    """
    if params.posonly_params:
        remaining = params.posonly_params[1:]
        if remaining:
            return params.with_changes(posonly_params=remaining)
        return params.with_changes(posonly_params=(), posonly_ind=cst.MaybeSentinel.DEFAULT)

    if params.params:
        return params.with_changes(params=params.params[1:])

    raise ValueError("Method has no positional parameter to remove")
