"""Eligibility of a method for conversion to a static method."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import libcst as cst

from staticfier.core.class_model import ClassModel, MemberSymbol
from staticfier.core.decorator_handler import DecoratorHandler
from staticfier.core.instance_reference_classifier import has_instance_reference
from staticfier.core.member_references import MethodReferences, collect_member_references
from staticfier.core.resolution import ModuleResolution
from staticfier.core.self_parameter import first_positional_parameter

logger = logging.getLogger(__name__)


class Rejection(Enum):
    """Why a method stays an instance method."""

    NOT_PRIVATE = "not private"
    ALREADY_STATIC = "already static"
    UNSUPPORTED_DECORATOR = "has a decorator other than @final"
    NO_SELF_PARAMETER = "has no instance parameter"
    INSTANCE_REFERENCE = "references instance state"
    SHADOWED_QUALIFIER = "class name is shadowed inside the method"
    NOT_DIRECT_MEMBER = "is not defined directly in the class body"
    ACCESSED_THROUGH_CLASS = "is accessed through the class"


@dataclass(frozen=True)
class Eligibility:
    """Outcome of the eligibility check.

    Attributes:
        accepted: True if the method can be made static
        rejection: Reason for rejecting, None when accepted
        symbol: Identity of the method in its class (set once resolved)
        references: Member references of the body (set once collected)
    """

    accepted: bool
    rejection: Optional[Rejection] = None
    symbol: Optional[MemberSymbol] = None
    references: Optional[MethodReferences] = None

    @classmethod
    def reject(
        cls,
        rejection: Rejection,
        symbol: Optional[MemberSymbol] = None,
        references: Optional[MethodReferences] = None,
    ) -> "Eligibility":
        return cls(accepted=False, rejection=rejection, symbol=symbol, references=references)


def is_private_name(name: str) -> bool:
    """Check for a single or double underscore prefix, excluding dunder names."""
    if name.startswith("__") and name.endswith("__"):
        return False
    return name.startswith("_")


def decide(
    method: cst.FunctionDef, class_model: ClassModel, resolution: ModuleResolution
) -> Eligibility:
    """Decide whether a method can become a static method.

    Args:
        method: A method defined directly in the class (a node of resolution.module)
        class_model: Model of the declaring class
        resolution: Resolution of the module

    Returns:
        The eligibility of the method

    Raises:
        UnresolvedDeclarationError: If the method is not a member of class_model
    """
    if not is_private_name(method.name.value):
        return Eligibility.reject(Rejection.NOT_PRIVATE)

    handler = DecoratorHandler(method)
    if handler.is_static():
        return Eligibility.reject(Rejection.ALREADY_STATIC)
    if handler.unsupported_decorators():
        return Eligibility.reject(Rejection.UNSUPPORTED_DECORATOR)
    if first_positional_parameter(method.params) is None:
        return Eligibility.reject(Rejection.NO_SELF_PARAMETER)

    symbol = class_model.identify(method)
    if symbol.name in class_model.accessed_through_class:
        return Eligibility.reject(Rejection.ACCESSED_THROUGH_CLASS, symbol=symbol)

    references = collect_member_references(method, class_model, resolution)
    if has_instance_reference(references.references, symbol):
        return Eligibility.reject(
            Rejection.INSTANCE_REFERENCE, symbol=symbol, references=references
        )
    if references.self_receivers and references.shadowed_qualifier:
        return Eligibility.reject(
            Rejection.SHADOWED_QUALIFIER, symbol=symbol, references=references
        )

    return Eligibility(accepted=True, symbol=symbol, references=references)
