"""Base class for all refactoring commands."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TypeVar

import libcst as cst

from staticfier.core.resolution import resolve_module

logger = logging.getLogger(__name__)

TransformerT = TypeVar("TransformerT", bound=cst.CSTTransformer)


class BaseCommand(ABC):
    """Base class for all refactoring commands."""

    name: str  # e.g., "make-method-static"

    def __init__(self, file_path: Path, **params: Any):
        """Initialize the command.

        Args:
            file_path: Path to the file to refactor
            **params: Additional parameters for the refactoring
        """
        self.file_path = Path(file_path)
        self.params = params
        self.changed = False

    @abstractmethod
    def execute(self) -> None:
        """Execute the refactoring and modify the file in place.

        Raises:
            ValueError: If refactoring cannot be applied
        """
        pass

    def validate_required_params(self, *param_names: str) -> None:
        """Validate that required parameters are present.

        Args:
            *param_names: Names of required parameters

        Raises:
            ValueError: If any required parameters are missing
        """
        missing = [p for p in param_names if p not in self.params]
        if missing:
            raise ValueError(f"Missing required parameters for {self.name}: {', '.join(missing)}")

    @abstractmethod
    def validate(self) -> None:
        """Validate parameters before execution.

        Raises:
            ValueError: If parameters are invalid
        """
        pass

    def apply_libcst_transform(
        self,
        transformer_class: type[TransformerT],
        *args: Any,
        write: bool = True,
        **kwargs: Any,
    ) -> TransformerT:
        """Apply a libCST transformer to the file.

        The module is resolved first; the transformer receives the resolution as
        its first argument and visits the resolved module. The file is only
        written when the whole module was transformed and the code changed.

        Args:
            transformer_class: The transformer class to instantiate
            *args: Positional arguments for transformer
            write: If False, compute the result without touching the file
            **kwargs: Keyword arguments for transformer

        Returns:
            The transformer, for inspecting what it did
        """
        source_code = self.file_path.read_text()
        resolution = resolve_module(source_code)
        transformer = transformer_class(resolution, *args, **kwargs)
        modified_tree = resolution.module.visit(transformer)

        self.changed = modified_tree.code != source_code
        if self.changed and write:
            self.file_path.write_text(modified_tree.code)
            logger.debug("Wrote %s", self.file_path)
        return transformer
