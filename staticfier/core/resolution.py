"""Module-wide name resolution shared by the analysis passes."""

from dataclasses import dataclass
from typing import Mapping, Optional, Union

import libcst as cst
from libcst.metadata import (
    ExpressionContext,
    ExpressionContextProvider,
    MetadataWrapper,
    Scope,
    ScopeProvider,
)

from staticfier.core.class_model import ClassModel, collect_class_models


@dataclass(frozen=True)
class ModuleResolution:
    """Resolved view of one module.

    All mappings are keyed by nodes of ``module``; transformations that need
    the resolution must visit this module, not the one originally parsed.

    Attributes:
        module: The module the metadata was computed on
        scopes: Scope of every node (ScopeProvider)
        contexts: Load/store/delete context of expressions (ExpressionContextProvider)
        classes: Class models keyed by ClassDef node
    """

    module: cst.Module
    scopes: Mapping[cst.CSTNode, Optional[Scope]]
    contexts: Mapping[cst.CSTNode, ExpressionContext]
    classes: Mapping[cst.ClassDef, ClassModel]


def resolve_module(source: Union[str, cst.Module]) -> ModuleResolution:
    """Parse (if needed) and resolve a module.

    Args:
        source: Python source code or an already parsed module

    Returns:
        The resolution of the module

    Raises:
        libcst.ParserSyntaxError: If the source cannot be parsed
    """
    module = cst.parse_module(source) if isinstance(source, str) else source
    wrapper = MetadataWrapper(module)
    scopes = wrapper.resolve(ScopeProvider)
    contexts = wrapper.resolve(ExpressionContextProvider)
    classes = collect_class_models(wrapper.module, contexts)
    return ModuleResolution(
        module=wrapper.module, scopes=scopes, contexts=contexts, classes=classes
    )
