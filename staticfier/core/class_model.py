"""Per-class symbol tables used to resolve member references.

A ClassModel records which names a class defines and whether each one is
type-level (static) or bound to an instance. The analysis only trusts what is
written directly in the class body: anything inherited, created dynamically,
bound under an if/try block or redefined by a subclass resolves to None and is
treated as unsafe by the callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

import libcst as cst
from libcst.helpers import get_full_name_for_node
from libcst.metadata import ExpressionContext

from staticfier.core.decorator_handler import DecoratorHandler
from staticfier.core.errors import UnresolvedDeclarationError
from staticfier.core.self_parameter import first_positional_parameter

# Methods whose first parameter is the class without a @classmethod decorator
IMPLICIT_CLASS_METHODS = {"__new__", "__init_subclass__", "__class_getitem__"}

PLAIN_VALUE_NODES = (
    cst.SimpleString,
    cst.ConcatenatedString,
    cst.FormattedString,
    cst.Integer,
    cst.Float,
    cst.Imaginary,
    cst.Ellipsis,
    cst.List,
    cst.Tuple,
    cst.Set,
    cst.Dict,
    cst.ListComp,
    cst.SetComp,
    cst.DictComp,
    cst.GeneratorExp,
)


class MemberKind(Enum):
    """Kind of a class member."""

    FIELD = "field"
    METHOD = "method"


@dataclass(frozen=True)
class MemberSymbol:
    """A resolved member of a class.

    Attributes:
        name: Member name as written in the class body
        owner: Qualified name of the declaring class
        kind: Field or method
        is_static: True when the member lives on the class, not the instance
        node: The defining node (FunctionDef for methods), if any
    """

    name: str
    owner: str
    kind: MemberKind
    is_static: bool
    node: Optional[cst.CSTNode] = None


@dataclass
class ClassModel:
    """Symbol table of a single class definition."""

    name: str
    qualified_name: str
    node: cst.ClassDef
    members: dict[str, MemberSymbol] = field(default_factory=dict)
    methods_by_node: dict[cst.FunctionDef, MemberSymbol] = field(default_factory=dict)
    instance_attributes: set[str] = field(default_factory=set)
    overridden: set[str] = field(default_factory=set)
    conditional: set[str] = field(default_factory=set)
    accessed_through_class: set[str] = field(default_factory=set)
    base_names: list[str] = field(default_factory=list)
    head_node: Optional[cst.ClassDef] = None

    @property
    def qualifier_head(self) -> str:
        """First component of the qualified name, the only part looked up by name."""
        return self.qualified_name.split(".")[0]

    def resolve(self, name: str) -> Optional[MemberSymbol]:
        """Resolve a member accessed through an instance of this class.

        Args:
            name: Attribute name

        Returns:
            The member symbol, or None if the name is unknown or ambiguous
        """
        if name in self.overridden or name in self.conditional:
            return None
        if name in self.instance_attributes:
            declared = self.members.get(name)
            return MemberSymbol(
                name=name,
                owner=self.qualified_name,
                kind=declared.kind if declared else MemberKind.FIELD,
                is_static=False,
                node=declared.node if declared else None,
            )
        return self.members.get(name)

    def identify(self, method: cst.FunctionDef) -> MemberSymbol:
        """Return the identity of a method defined directly in this class.

        Raises:
            UnresolvedDeclarationError: If the node is not one of the class's methods
        """
        try:
            return self.methods_by_node[method]
        except KeyError:
            raise UnresolvedDeclarationError(self.qualified_name, method.name.value) from None

    def add_member(self, symbol: MemberSymbol) -> None:
        self.members[symbol.name] = symbol
        if isinstance(symbol.node, cst.FunctionDef):
            self.methods_by_node[symbol.node] = symbol


@dataclass
class _Frame:
    kind: str  # "class", "method" or "function"
    model: Optional[ClassModel] = None
    self_name: Optional[str] = None
    cls_name: Optional[str] = None


class ClassModelCollector(cst.CSTVisitor):
    """Builds a ClassModel for every class of a module.

    Besides the members of each class, the collector records every member
    reached through the class itself (``Order._total(order)``, ``cls._total``,
    ``type(self)._total``), since such call sites pass the instance explicitly.

    Example:
        resolution = resolve_module(source)
        model = resolution.classes[class_def]
        model.resolve("offset")
    """

    def __init__(self, contexts: Mapping[cst.CSTNode, ExpressionContext]) -> None:
        """Initialize the collector.

        Args:
            contexts: ExpressionContextProvider results for the visited module
        """
        self.contexts = contexts
        self.classes: dict[cst.ClassDef, ClassModel] = {}
        self._stack: list[_Frame] = []
        # (class name, member); a class name of None stands for any class
        self._class_accesses: list[tuple[Optional[str], str]] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:  # noqa: N802
        """Create the model of a class and record its body-level members."""
        name = node.name.value
        parent = self._stack[-1] if self._stack else None
        if parent is not None and parent.kind == "class" and parent.model is not None:
            qualified_name = f"{parent.model.qualified_name}.{name}"
            head_node = parent.model.head_node
        else:
            qualified_name = name
            head_node = node

        model = ClassModel(
            name=name, qualified_name=qualified_name, node=node, head_node=head_node
        )
        for base in node.bases:
            base_name = get_full_name_for_node(base.value)
            if base_name:
                model.base_names.append(base_name)
        self._collect_members(model, node)
        self.classes[node] = model
        self._stack.append(_Frame("class", model))
        return True

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:  # noqa: N802
        self._stack.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:  # noqa: N802
        parent = self._stack[-1] if self._stack else None
        if parent is not None and parent.kind == "class":
            first_param = first_positional_parameter(node.params)
            first_name = first_param.name.value if first_param is not None else None
            handler = DecoratorHandler(node)
            frame = _Frame("method", parent.model)
            is_class_method = (
                "classmethod" in handler.decorator_names()
                or node.name.value in IMPLICIT_CLASS_METHODS
            )
            if is_class_method:
                frame.cls_name = first_name
            elif not handler.is_static():
                frame.self_name = first_name
            self._stack.append(frame)
        else:
            self._stack.append(_Frame("function"))
        return True

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:  # noqa: N802
        self._stack.pop()

    def visit_Attribute(self, node: cst.Attribute) -> bool:  # noqa: N802
        """Record instance-parameter stores and accesses through a class."""
        self._record_class_access(node.value, node.attr.value)

        if self.contexts.get(node) not in (ExpressionContext.STORE, ExpressionContext.DEL):
            return True
        if not isinstance(node.value, cst.Name):
            return True

        frame = self._enclosing_method()
        if frame is not None and frame.model is not None and node.value.value == frame.self_name:
            frame.model.instance_attributes.add(node.attr.value)
        return True

    def visit_Call(self, node: cst.Call) -> bool:  # noqa: N802
        """Record ``getattr(Order, "_total")`` like ``Order._total``."""
        if (
            isinstance(node.func, cst.Name)
            and node.func.value == "getattr"
            and len(node.args) >= 2
            and isinstance(node.args[1].value, cst.SimpleString)
        ):
            member = node.args[1].value.evaluated_value
            if isinstance(member, str):
                self._record_class_access(node.args[0].value, member)
        return True

    def finalize(self) -> dict[cst.ClassDef, ClassModel]:
        """Resolve class relationships once every class is known.

        Members redefined by subclasses in the module become ambiguous, and
        members reached through a class are recorded on that class and its
        bases.

        Returns:
            The collected class models keyed by their ClassDef node
        """
        subclasses: dict[int, list[ClassModel]] = {}
        bases: dict[int, list[ClassModel]] = {}
        for model in self.classes.values():
            for base_name in model.base_names:
                for candidate in self.classes.values():
                    if base_name in (candidate.qualified_name, candidate.name):
                        subclasses.setdefault(id(candidate), []).append(model)
                        bases.setdefault(id(model), []).append(candidate)

        for model in self.classes.values():
            for subclass in _closure(model, subclasses):
                model.overridden |= set(subclass.members) | subclass.instance_attributes

        for class_name, member in self._class_accesses:
            for model in self.classes.values():
                if class_name is None or class_name == model.name:
                    model.accessed_through_class.add(member)
                    for base in _closure(model, bases):
                        base.accessed_through_class.add(member)
        return self.classes

    def _enclosing_method(self) -> Optional[_Frame]:
        for frame in reversed(self._stack):
            if frame.kind == "class":
                return None
            if frame.kind == "method":
                return frame
        return None

    def _record_class_access(self, value: cst.BaseExpression, member: str) -> None:
        if isinstance(value, cst.Call):
            if isinstance(value.func, cst.Name) and value.func.value == "type":
                self._class_accesses.append((None, member))
            return
        if isinstance(value, cst.Attribute) and value.attr.value == "__class__":
            self._class_accesses.append((None, member))
            return
        if isinstance(value, cst.Name):
            frame = self._enclosing_method()
            if frame is not None and frame.model is not None and value.value == frame.cls_name:
                self._class_accesses.append((frame.model.name, member))
                return
        dotted_name = get_full_name_for_node(value)
        if dotted_name is not None:
            # Kept only if it names a class of the module, see finalize()
            self._class_accesses.append((dotted_name.split(".")[-1], member))

    def _collect_members(self, model: ClassModel, node: cst.ClassDef) -> None:
        if not isinstance(node.body, cst.IndentedBlock):
            statements: list[cst.CSTNode] = [node.body]
        else:
            statements = list(node.body.body)

        for stmt in statements:
            if isinstance(stmt, cst.FunctionDef):
                model.add_member(
                    MemberSymbol(
                        name=stmt.name.value,
                        owner=model.qualified_name,
                        kind=MemberKind.METHOD,
                        is_static=DecoratorHandler(stmt).is_static(),
                        node=stmt,
                    )
                )
            elif isinstance(stmt, cst.ClassDef):
                model.add_member(
                    MemberSymbol(stmt.name.value, model.qualified_name, MemberKind.FIELD, True, stmt)
                )
            elif isinstance(stmt, (cst.SimpleStatementLine, cst.SimpleStatementSuite)):
                for small in stmt.body:
                    self._collect_assignment(model, small)
            else:
                # if/try/for/with/while blocks: whatever they bind may or may not exist
                bound = _BoundNameCollector()
                stmt.visit(bound)
                model.conditional |= bound.names

    def _collect_assignment(self, model: ClassModel, small: cst.BaseSmallStatement) -> None:
        if isinstance(small, cst.Assign):
            is_static = _is_plain_value(small.value)
            for target in small.targets:
                for name in _target_names(target.target):
                    model.add_member(
                        MemberSymbol(name, model.qualified_name, MemberKind.FIELD, is_static, small)
                    )
                    if name == "__slots__":
                        model.instance_attributes |= _slot_names(small.value)
        elif isinstance(small, cst.AnnAssign) and isinstance(small.target, cst.Name):
            # Annotated class attributes are instance defaults unless marked ClassVar
            is_static = (
                small.value is not None
                and _is_class_var(small.annotation)
                and _is_plain_value(small.value)
            )
            model.add_member(
                MemberSymbol(
                    small.target.value, model.qualified_name, MemberKind.FIELD, is_static, small
                )
            )


def _target_names(target: cst.BaseAssignTargetExpression) -> list[str]:
    if isinstance(target, cst.Name):
        return [target.value]
    if isinstance(target, (cst.Tuple, cst.List)):
        names: list[str] = []
        for element in target.elements:
            names.extend(_target_names(element.value))
        return names
    return []


def _is_plain_value(value: cst.BaseExpression) -> bool:
    """Check that a class attribute value cannot be a function or descriptor.

    Anything read from a name or computed by a call may be a function, which
    binds to the instance when read through it.
    """
    if isinstance(value, PLAIN_VALUE_NODES):
        return True
    if isinstance(value, cst.Name):
        return value.value in ("None", "True", "False")
    if isinstance(value, cst.UnaryOperation):
        return _is_plain_value(value.expression)
    if isinstance(value, cst.BinaryOperation):
        return _is_plain_value(value.left) and _is_plain_value(value.right)
    return False


def _closure(model: ClassModel, edges: Mapping[int, list[ClassModel]]) -> list[ClassModel]:
    """Classes reachable from model along edges, model itself excluded."""
    seen: set[int] = set()
    reached: list[ClassModel] = []
    pending = list(edges.get(id(model), []))
    while pending:
        other = pending.pop()
        if id(other) in seen:
            continue
        seen.add(id(other))
        reached.append(other)
        pending.extend(edges.get(id(other), []))
    return reached


class _BoundNameCollector(cst.CSTVisitor):
    """Names bound by a compound statement of a class body."""

    def __init__(self) -> None:
        self.names: set[str] = set()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:  # noqa: N802
        self.names.add(node.name.value)
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:  # noqa: N802
        self.names.add(node.name.value)
        return False

    def visit_Lambda(self, node: cst.Lambda) -> bool:  # noqa: N802
        return False

    def visit_AssignTarget(self, node: cst.AssignTarget) -> None:  # noqa: N802
        self.names.update(_target_names(node.target))

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:  # noqa: N802
        self.names.update(_target_names(node.target))

    def visit_AugAssign(self, node: cst.AugAssign) -> None:  # noqa: N802
        self.names.update(_target_names(node.target))

    def visit_For(self, node: cst.For) -> None:  # noqa: N802
        self.names.update(_target_names(node.target))

    def visit_AsName(self, node: cst.AsName) -> None:  # noqa: N802
        self.names.update(_target_names(node.name))

    def visit_ImportAlias(self, node: cst.ImportAlias) -> None:  # noqa: N802
        if node.asname is None:
            full_name = get_full_name_for_node(node.name)
            if full_name:
                self.names.add(full_name.split(".")[0])

    def visit_NamedExpr(self, node: cst.NamedExpr) -> None:  # noqa: N802
        self.names.update(_target_names(node.target))


def _is_class_var(annotation: cst.Annotation) -> bool:
    expr = annotation.annotation
    if isinstance(expr, cst.Subscript):
        expr = expr.value
    name = get_full_name_for_node(expr)
    return name is not None and name.split(".")[-1] == "ClassVar"


def _slot_names(value: cst.BaseExpression) -> set[str]:
    if isinstance(value, cst.SimpleString):
        return {str(value.evaluated_value)}
    names: set[str] = set()
    if isinstance(value, (cst.Tuple, cst.List, cst.Set)):
        for element in value.elements:
            if isinstance(element.value, cst.SimpleString):
                names.add(str(element.value.evaluated_value))
    return names


def collect_class_models(
    module: cst.Module, contexts: Mapping[cst.CSTNode, ExpressionContext]
) -> dict[cst.ClassDef, ClassModel]:
    """Build the models of every class in a module.

    Args:
        module: The module to analyze (the one the contexts were resolved on)
        contexts: ExpressionContextProvider results for that module

    Returns:
        Class models keyed by ClassDef node
    """
    collector = ClassModelCollector(contexts)
    module.visit(collector)
    return collector.finalize()
