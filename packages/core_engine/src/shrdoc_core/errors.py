from typing import List


class ModelError(ValueError):
    """Base class for models the documentation build cannot satisfy."""


class ModelIntegrityError(ModelError):
    """A referenced fqn is missing from the element registry."""

    def __init__(self, fqn: str, context: str = "") -> None:
        self.fqn = fqn
        self.context = context
        message = f"Unknown data element '{fqn}'"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class CycleDetected(ModelError):
    def __init__(self, chain: List[str]) -> None:
        self.chain = list(chain)
        super().__init__(f"Inheritance cycle detected: {' -> '.join(self.chain)}")


class DuplicateElementError(ModelError):
    def __init__(self, fqn: str) -> None:
        self.fqn = fqn
        super().__init__(f"Data element '{fqn}' is defined more than once")


class UnsupportedFixedValueError(ModelError):
    def __init__(self, kind: str, path: str) -> None:
        self.kind = kind
        self.path = path
        super().__init__(f"Unsupported fixed value type '{kind}' at {path}")
