"""Make Method Static refactoring command."""

import logging
from typing import Optional

import libcst as cst

from staticfier.commands.base import BaseCommand
from staticfier.commands.registry import register_command
from staticfier.core.ast_utils import parse_method_target
from staticfier.core.class_aware_transformer import ClassAwareTransformer
from staticfier.core.decorator_handler import DecoratorHandler
from staticfier.core.eligibility import Eligibility, Rejection, decide
from staticfier.core.resolution import ModuleResolution
from staticfier.core.self_parameter import remove_self_parameter
from staticfier.core.self_reference_qualifier import SelfReferenceQualifier

logger = logging.getLogger(__name__)


class MakeMethodStaticCommand(BaseCommand):
    """Turn private methods that never use instance data into static methods.

    A private method that reads no instance attribute and calls no other
    instance method does not need ``self``. Making it a ``@staticmethod``
    documents that fact and lets it be called without an instance. Only
    private methods are considered, so no caller outside the class can be
    relying on the bound signature.

    **When to use:**
    - A helper method only transforms its arguments
    - A method reads class-level constants through ``self``
    - A recursive helper that only calls itself

    **Example:**
    Before:
        class Utilities:
            MAGIC_WORD = "magic"

            def _shout(self, word):
                return word.upper() + self.MAGIC_WORD

            def _describe(self):
                return f"{self.name}: {self._shout(self.name)}"

    After:
        class Utilities:
            MAGIC_WORD = "magic"

            @staticmethod
            def _shout(word):
                return word.upper() + Utilities.MAGIC_WORD

            def _describe(self):
                return f"{self.name}: {self._shout(self.name)}"

    Parameters:
        target: Optional 'ClassName' or 'ClassName::method_name'; without it every
            private method of the file is considered
        check: If true, report what would change without writing the file
    """

    name = "make-method-static"

    def validate(self) -> None:
        """Validate the optional target format.

        Raises:
            ValueError: If the target format is invalid
        """
        target = self.params.get("target")
        if target is not None:
            parse_method_target(target)

    def execute(self) -> None:
        """Apply make-method-static refactoring using libCST.

        Raises:
            ValueError: If an explicit target is not found, or names a single
                method that cannot be made static
        """
        target = self.params.get("target")
        class_name, method_name = parse_method_target(target) if target else (None, None)

        transformer = self.apply_libcst_transform(
            MakeMethodStaticTransformer,
            class_name,
            method_name,
            write=not self.params.get("check", False),
        )
        self.converted = transformer.converted
        self.rejected = transformer.rejected

        if target is not None and not transformer.matched:
            raise ValueError(f"Could not find target '{target}' in {self.file_path}")
        if method_name is not None and transformer.rejected and not transformer.converted:
            qualified, rejection = next(iter(transformer.rejected.items()))
            raise ValueError(f"Cannot make '{qualified}' static: method {rejection.value}")


class MakeMethodStaticTransformer(ClassAwareTransformer):
    """Adds @staticmethod to eligible methods and rewrites their bodies.

    Each method is decided on entry, against the unmodified tree. Accepted
    methods open a qualifier frame so that ``self.X`` receivers inside them are
    replaced by the class reference on the way back up; the decorators and the
    signature are rewritten when the method is left.
    """

    def __init__(
        self,
        resolution: ModuleResolution,
        class_name: Optional[str] = None,
        function_name: Optional[str] = None,
    ) -> None:
        """Initialize the transformer.

        Args:
            resolution: Resolution of the module being transformed
            class_name: Optional class to restrict the rewrite to
            function_name: Optional method name to restrict the rewrite to
        """
        super().__init__(class_name, function_name)
        self.resolution = resolution
        self.qualifier = SelfReferenceQualifier()
        self.matched: list[str] = []
        self.converted: list[str] = []
        self.rejected: dict[str, Rejection] = {}
        self._decisions: list[Optional[Eligibility]] = []

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:  # noqa: N802
        """Decide whether the method being entered becomes static."""
        super().visit_FunctionDef(node)
        eligibility = None

        class_node = self.current_class_node
        if self.matches_target() and class_node is not None:
            model = self.resolution.classes[class_node]
            qualified = f"{model.qualified_name}.{node.name.value}"
            self.matched.append(qualified)

            if node in model.methods_by_node:
                eligibility = decide(node, model, self.resolution)
            else:
                eligibility = Eligibility.reject(Rejection.NOT_DIRECT_MEMBER)
            if eligibility.accepted and eligibility.references is not None:
                self.qualifier.enter(eligibility.references.self_receivers, model.qualified_name)
            elif eligibility.rejection is not None:
                self.rejected[qualified] = eligibility.rejection
                logger.debug("Keeping %s: method %s", qualified, eligibility.rejection.value)

        self._decisions.append(eligibility)
        return True

    def leave_Name(  # noqa: N802
        self, original_node: cst.Name, updated_node: cst.Name
    ) -> cst.BaseExpression:
        """Replace instance-parameter receivers of accepted methods."""
        return self.qualifier.qualify(original_node, updated_node)

    def leave_FunctionDef(  # noqa: N802
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.FunctionDef:
        """Rewrite decorators and signature of an accepted method."""
        eligibility = self._decisions.pop()
        if eligibility is not None and eligibility.accepted:
            self.qualifier.exit()
            updated_node = updated_node.with_changes(
                decorators=DecoratorHandler.add_static_decorator(updated_node.decorators),
                params=remove_self_parameter(updated_node.params),
            )
            qualified = f"{self.current_qualified_class}.{original_node.name.value}"
            self.converted.append(qualified)
            logger.info("Made %s static", qualified)
        return super().leave_FunctionDef(original_node, updated_node)


# Register the command
register_command(MakeMethodStaticCommand)
