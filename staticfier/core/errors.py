"""Errors raised by the static method analysis."""


class UnresolvedDeclarationError(ValueError):
    """Raised when a method declaration has no resolved identity in its class.

    Proceeding without an identity would make the recursion check meaningless,
    so the analysis refuses to continue instead of guessing.
    """

    def __init__(self, class_name: str, method_name: str) -> None:
        self.class_name = class_name
        self.method_name = method_name
        super().__init__(
            f"Unresolved declaration: '{method_name}' is not a method of class '{class_name}'"
        )
