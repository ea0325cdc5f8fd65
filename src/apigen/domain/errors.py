from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """Base for every failure that aborts a generation run."""

    def __init__(self, message: str, file_path: str = "", line: Optional[int] = None) -> None:
        self.message = message
        self.file_path = file_path
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.file_path and self.line:
            return f"{self.file_path}:{self.line}: {self.message}"
        if self.file_path:
            return f"{self.file_path}: {self.message}"
        return self.message


class DeclarationParseError(GenerationError):
    pass


class AnnotationError(GenerationError):
    pass


class SignatureError(GenerationError):
    pass


class UnresolvedTypeError(GenerationError):
    pass


class ConstraintError(GenerationError):
    pass


class RouteConflictError(GenerationError):
    pass


class EmitError(GenerationError):
    pass
