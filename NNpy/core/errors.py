class ShapeMismatchError(ValueError):
    """Raised when tensor operands have incompatible shapes."""


class ArityMismatchError(ValueError):
    """Raised when a Function receives a different number of inputs than it declares."""


class MissingEntryError(KeyError):
    """Raised when a cache or update bundle is asked for a name it never stored."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Could not find the data from the key '{self.name}'."
