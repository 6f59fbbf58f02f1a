"""Error types raised by the selection engine and its collaborators."""

from typing import Any

from pydantic import ValidationError


class SelectionValidationError(ValueError):
    """A rule set, query spec or segment request is structurally invalid.

    The whole payload is rejected; ``errors`` holds one entry per problem
    in the same shape pydantic reports them.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [{"loc": [], "msg": message, "type": "value_error"}]

    @classmethod
    def from_pydantic(cls, what: str, exc: ValidationError) -> "SelectionValidationError":
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors(include_url=False)
        ]
        return cls(f"Invalid {what}: {exc.error_count()} error(s)", errors)


class BackendError(RuntimeError):
    """The CRM backend could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
