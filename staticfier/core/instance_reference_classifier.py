"""Decide whether a method body touches instance state.

The check is syntactic and conservative: a reference is safe only when the
resolved information proves it does not depend on the instance. Called methods
are not inspected, so a method that calls a sibling instance method is
rejected even if that sibling could itself become static.
"""

import logging
from typing import Iterable

from staticfier.core.class_model import MemberSymbol
from staticfier.core.member_references import (
    FieldAccess,
    Invocation,
    MemberReference,
    NameReference,
    Owner,
    ReceiverKind,
    SelfReference,
)

logger = logging.getLogger(__name__)

SAFE_FIELD_TARGETS = {
    ReceiverKind.LOCAL_VARIABLE,
    ReceiverKind.MODULE_GLOBAL,
    ReceiverKind.FRESH_COLLECTION,
    ReceiverKind.FRESH_OBJECT,
    ReceiverKind.LITERAL,
    ReceiverKind.EXPRESSION,
}


def has_instance_reference(
    references: Iterable[MemberReference], method_symbol: MemberSymbol
) -> bool:
    """Check whether any reference reads or invokes instance state.

    Args:
        references: Member references of the method body
        method_symbol: Identity of the analyzed method, exempt from the
            instance-call rule so that direct recursion stays allowed

    Returns:
        True as soon as one reference touches instance state
    """
    for reference in references:
        if touches_instance_state(reference, method_symbol):
            logger.debug(
                "%s touches instance state through %s",
                method_symbol.name,
                type(reference).__name__,
            )
            return True
    return False


def touches_instance_state(reference: MemberReference, method_symbol: MemberSymbol) -> bool:
    """Classify a single member reference.

    Raises:
        TypeError: If the reference is not one of the known reference shapes
    """
    if isinstance(reference, NameReference):
        if reference.owner is Owner.UNRESOLVED:
            return True
        return reference.owner is Owner.DECLARING_TYPE and not reference.is_static

    if isinstance(reference, FieldAccess):
        if reference.target is ReceiverKind.SELF:
            if reference.is_store or reference.member is None:
                return True
            return not _is_static_or_same(reference.member, method_symbol)
        return reference.target not in SAFE_FIELD_TARGETS

    if isinstance(reference, Invocation):
        if reference.receiver is None:
            if reference.owner in (Owner.UNRESOLVED, Owner.DECLARING_TYPE):
                return True
            if reference.member is None:
                return False
            return not _is_static_or_same(reference.member, method_symbol)
        if reference.receiver is ReceiverKind.SELF:
            if reference.member is None:
                return True
            return not _is_static_or_same(reference.member, method_symbol)
        return False

    if isinstance(reference, SelfReference):
        return True

    raise TypeError(f"Unknown member reference: {reference!r}")


def _is_static_or_same(member: MemberSymbol, method_symbol: MemberSymbol) -> bool:
    return member.is_static or member is method_symbol
