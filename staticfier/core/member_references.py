"""Lowering of a method body into member references.

Every expression of a method body that can touch state is reported as one of
four reference shapes:

- NameReference: a bare name load (``total``, ``super``)
- FieldAccess: an attribute access that is not the callee of a call (``self.rate``)
- Invocation: a call (``self.helper(x)``, ``compute(x)``)
- SelfReference: any other use of the instance parameter (``return self``)

Each reference carries what name resolution knows about it: who owns a bare
name, what kind of expression an attribute is read from, and which class member
an access through the instance parameter resolves to. The classifier in
instance_reference_classifier decides from these alone, without looking at the
tree again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

import libcst as cst
from libcst.metadata import (
    Access,
    Assignment,
    BaseAssignment,
    BuiltinAssignment,
    ExpressionContext,
    GlobalScope,
    Scope,
)

from staticfier.core.class_model import ClassModel, MemberSymbol
from staticfier.core.resolution import ModuleResolution
from staticfier.core.self_parameter import first_positional_parameter

# Names that reach the instance without spelling out the instance parameter
INSTANCE_BOUND_NAMES = {"super", "__class__"}

# Builtins that can observe the local namespace, and with it the instance parameter
DYNAMIC_SCOPE_NAMES = {"locals", "vars", "eval", "exec"}

FRESH_COLLECTION_NODES = (
    cst.List,
    cst.Tuple,
    cst.Set,
    cst.Dict,
    cst.ListComp,
    cst.SetComp,
    cst.DictComp,
    cst.GeneratorExp,
)

LITERAL_NODES = (
    cst.SimpleString,
    cst.ConcatenatedString,
    cst.FormattedString,
    cst.Integer,
    cst.Float,
    cst.Imaginary,
)


class Owner(Enum):
    """Where a bare name is bound."""

    DECLARING_TYPE = "declaring_type"
    LOCAL = "local"
    MODULE = "module"
    BUILTIN = "builtin"
    UNRESOLVED = "unresolved"


class ReceiverKind(Enum):
    """Shape of the expression an attribute is read from."""

    SELF = "self"  # self.x
    LOCAL_VARIABLE = "local"  # item.x
    MODULE_GLOBAL = "global"  # math.pi
    FRESH_COLLECTION = "collection"  # [1, 2].copy()
    FRESH_OBJECT = "object"  # Point().x
    LITERAL = "literal"  # ", ".join
    EXPRESSION = "expression"  # items[0].x
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class NameReference:
    node: cst.Name
    owner: Owner
    is_static: bool


@dataclass(frozen=True)
class FieldAccess:
    node: cst.Attribute
    target: ReceiverKind
    member: Optional[MemberSymbol]
    is_store: bool


@dataclass(frozen=True)
class Invocation:
    """A call; ``receiver`` is None for a call of a bare name, ``owner`` says
    where that name is bound."""

    node: cst.Call
    receiver: Optional[ReceiverKind]
    member: Optional[MemberSymbol]
    owner: Optional[Owner] = None


@dataclass(frozen=True)
class SelfReference:
    node: cst.Name


MemberReference = Union[NameReference, FieldAccess, Invocation, SelfReference]


@dataclass
class MethodReferences:
    """Result of lowering one method body.

    Attributes:
        references: Member references in source order
        self_receivers: Instance-parameter names used as attribute receivers;
            these are the names rewritten to the class reference
        shadowed_qualifier: True when the class name is not visible (or not the
            class) at one of the receivers
    """

    references: list[MemberReference] = field(default_factory=list)
    self_receivers: list[cst.Name] = field(default_factory=list)
    shadowed_qualifier: bool = False


class MemberReferenceCollector(cst.CSTVisitor):
    """Collects the member references of a single method body.

    Example:
        collector = MemberReferenceCollector(method, model, resolution)
        method.body.visit(collector)
        collector.result.references
    """

    def __init__(
        self, method: cst.FunctionDef, class_model: ClassModel, resolution: ModuleResolution
    ) -> None:
        """Initialize the collector.

        Args:
            method: The method whose body is analyzed (a node of resolution.module)
            class_model: Model of the class declaring the method
            resolution: Resolution of the module containing the method
        """
        self.method = method
        self.class_model = class_model
        self.resolution = resolution
        self.result = MethodReferences()
        self._access_index: dict[Scope, dict[cst.Name, Access]] = {}
        self._callees: set[cst.Attribute] = set()
        self._receivers: set[cst.Name] = set()
        self._self_names: set[cst.Name] = set()

        self_param = first_positional_parameter(method.params)
        if self_param is not None:
            self._collect_self_names(self_param)

    def visit_Call(self, node: cst.Call) -> bool:  # noqa: N802
        func = node.func
        if isinstance(func, cst.Attribute):
            self._callees.add(func)
            receiver = self._receiver_kind(func.value)
            member = self._resolve_member(func, receiver)
            self.result.references.append(Invocation(node, receiver, member))
        elif isinstance(func, cst.Name):
            owner = self._owner_of_name(func)
            self.result.references.append(Invocation(node, None, None, owner))
        else:
            self.result.references.append(Invocation(node, ReceiverKind.EXPRESSION, None))
        return True

    def visit_Attribute(self, node: cst.Attribute) -> bool:  # noqa: N802
        if isinstance(node.value, cst.Name) and node.value in self._self_names:
            self._receivers.add(node.value)
            self.result.self_receivers.append(node.value)
            if not self._qualifier_visible_at(node.value):
                self.result.shadowed_qualifier = True

        if node in self._callees:
            return True

        target = self._receiver_kind(node.value)
        context = self.resolution.contexts.get(node)
        self.result.references.append(
            FieldAccess(
                node=node,
                target=target,
                member=self._resolve_member(node, target),
                is_store=context in (ExpressionContext.STORE, ExpressionContext.DEL),
            )
        )
        return True

    def visit_Name(self, node: cst.Name) -> bool:  # noqa: N802
        if node in self._self_names:
            if node not in self._receivers:
                self.result.references.append(SelfReference(node))
            return False

        if self._access_for(node) is None:
            # Not a load: attribute names, keywords, parameters, store targets
            return False

        owner = self._owner_of_name(node)
        self.result.references.append(
            NameReference(node, owner, is_static=owner is not Owner.DECLARING_TYPE)
        )
        return False

    def _collect_self_names(self, self_param: cst.Param) -> None:
        scope = self.resolution.scopes.get(self_param.name)
        if scope is None:
            return
        assignments = scope.assignments[self_param.name.value]
        if len(assignments) > 1:
            # The instance parameter is rebound somewhere in the method
            self.result.references.append(SelfReference(self_param.name))

        for assignment in assignments:
            if isinstance(assignment, Assignment) and assignment.node is self_param:
                for access in assignment.references:
                    name = _innermost_name(access.node)
                    if name is not None:
                        self._self_names.add(name)

    def _access_for(self, node: cst.Name) -> Optional[Access]:
        scope = self.resolution.scopes.get(node)
        if scope is None:
            return None
        if scope not in self._access_index:
            index: dict[cst.Name, Access] = {}
            for access in scope.accesses:
                name = _innermost_name(access.node)
                if name is not None:
                    index[name] = access
            self._access_index[scope] = index
        return self._access_index[scope].get(node)

    def _owner_of_name(self, node: cst.Name) -> Owner:
        access = self._access_for(node)
        owner = _owner_of(access.referents) if access is not None else Owner.UNRESOLVED
        if owner in (Owner.BUILTIN, Owner.UNRESOLVED):
            if node.value in INSTANCE_BOUND_NAMES:
                return Owner.DECLARING_TYPE
            if node.value in DYNAMIC_SCOPE_NAMES:
                return Owner.UNRESOLVED
        return owner

    def _receiver_kind(self, expr: cst.BaseExpression) -> ReceiverKind:
        if isinstance(expr, cst.Name):
            if expr in self._self_names:
                return ReceiverKind.SELF
            owner = self._owner_of_name(expr)
            if owner is Owner.LOCAL:
                return ReceiverKind.LOCAL_VARIABLE
            if owner in (Owner.MODULE, Owner.BUILTIN):
                return ReceiverKind.MODULE_GLOBAL
            return ReceiverKind.UNRESOLVED
        if isinstance(expr, FRESH_COLLECTION_NODES):
            return ReceiverKind.FRESH_COLLECTION
        if isinstance(expr, cst.Call):
            return ReceiverKind.FRESH_OBJECT
        if isinstance(expr, LITERAL_NODES):
            return ReceiverKind.LITERAL
        return ReceiverKind.EXPRESSION

    def _resolve_member(
        self, node: cst.Attribute, receiver: ReceiverKind
    ) -> Optional[MemberSymbol]:
        if receiver is not ReceiverKind.SELF:
            return None
        return self.class_model.resolve(node.attr.value)

    def _qualifier_visible_at(self, node: cst.Name) -> bool:
        """Check that the class reference written at node resolves to the class."""
        scope = self.resolution.scopes.get(node)
        head_node = self.class_model.head_node
        if scope is None or head_node is None:
            return False
        assignments = scope[self.class_model.qualifier_head]
        return bool(assignments) and all(
            isinstance(assignment, Assignment) and assignment.node is head_node
            for assignment in assignments
        )


def _innermost_name(node: cst.CSTNode) -> Optional[cst.Name]:
    while isinstance(node, cst.Attribute):
        node = node.value
    return node if isinstance(node, cst.Name) else None


def _owner_of(referents: Iterable[BaseAssignment]) -> Owner:
    owners = set()
    for referent in referents:
        if isinstance(referent, BuiltinAssignment):
            owners.add(Owner.BUILTIN)
        elif isinstance(referent.scope, GlobalScope):
            owners.add(Owner.MODULE)
        else:
            owners.add(Owner.LOCAL)

    if not owners:
        return Owner.UNRESOLVED
    if owners == {Owner.BUILTIN}:
        return Owner.BUILTIN
    if Owner.LOCAL in owners:
        return Owner.LOCAL
    return Owner.MODULE


def collect_member_references(
    method: cst.FunctionDef, class_model: ClassModel, resolution: ModuleResolution
) -> MethodReferences:
    """Lower the body of a method into member references.

    Args:
        method: The method to analyze (a node of resolution.module)
        class_model: Model of the class declaring the method
        resolution: Resolution of the module containing the method

    Returns:
        The references found in the method body
    """
    collector = MemberReferenceCollector(method, class_model, resolution)
    method.body.visit(collector)
    return collector.result
