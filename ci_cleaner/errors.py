"""Error types and the per-run error collection."""

from __future__ import annotations
from typing import Iterator

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from botocore.exceptions import ClientError

NOT_FOUND_ERROR_CODES = {
    "404",
    "NotFound",
    "NoSuchBucket",
    "ResourceGroupNotFound",
    "ResourceNotFound",
    "InvalidInstanceID.NotFound",
}


class CleanerError(Exception):
    """Base class for ci-cleaner errors."""


class InvalidConfigError(CleanerError):
    """A required collaborator or parameter was not supplied."""


class CleanupCancelledError(CleanerError):
    """The run was cancelled between two provider calls."""


class ResourceOperationError(CleanerError):
    """A provider call failed while processing one resource.

    The provider exception is kept as ``__cause__`` so callers can still
    classify it (see ``is_not_found``).
    """

    def __init__(
        self,
        kind: str,
        name: str,
        operation: str,
        cause: BaseException,
        message: str | None = None,
    ):
        self.kind = kind
        self.name = name
        self.operation = operation
        super().__init__(message or f"{operation} {kind} {name!r}: {cause}")
        self.__cause__ = cause


class CleanupFailedError(ExceptionGroup):
    """Raised when a cleanup run recorded one or more errors."""


class ErrorCollection:
    """Ordered, append-only collection of errors recorded during a run.

    Collections may be nested; ``flatten`` and ``dump`` expand them in
    insertion order.
    """

    def __init__(self) -> None:
        self._errors: list[Exception | ErrorCollection] = []

    def append(self, error: Exception | ErrorCollection) -> None:
        self._errors.append(error)

    def extend(self, errors: ErrorCollection) -> None:
        for error in errors:
            self.append(error)

    def has_errors(self) -> bool:
        return any(
            not isinstance(e, ErrorCollection) or e.has_errors() for e in self._errors
        )

    def flatten(self) -> list[Exception]:
        flat: list[Exception] = []
        for error in self._errors:
            if isinstance(error, ErrorCollection):
                flat.extend(error.flatten())
            else:
                flat.append(error)
        return flat

    def dump(self) -> str:
        """Return a printable list of every contained error."""
        if not self.has_errors():
            return "No errors."
        return "".join(f"- {error}\n" for error in self.flatten())

    def to_exception(self, message: str) -> CleanupFailedError:
        return CleanupFailedError(message, self.flatten())

    def __len__(self) -> int:
        return len(self.flatten())

    def __iter__(self) -> Iterator[Exception | ErrorCollection]:
        return iter(list(self._errors))

    def __str__(self) -> str:
        return f"collection of {len(self)} errors"


def is_not_found(error: BaseException | None) -> bool:
    """Check whether a provider error (or any of its causes) means "not found"."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))

        if isinstance(error, ResourceNotFoundError):
            return True
        if isinstance(error, HttpResponseError) and error.status_code == 404:
            return True
        if isinstance(error, ClientError):
            error_info = error.response.get("Error", {})
            if error_info.get("Code", "") in NOT_FOUND_ERROR_CODES:
                return True
            status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if status == 404:
                return True
            # CloudFormation reports missing stacks as a ValidationError
            if "does not exist" in error_info.get("Message", ""):
                return True

        error = error.__cause__
    return False
