"""Unit tests for error classification and aggregation."""

from __future__ import annotations
import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from ci_cleaner.errors import (
    CleanupFailedError,
    ErrorCollection,
    ResourceOperationError,
    is_not_found,
)
from tests.fakes import client_error


@pytest.mark.unit
class TestIsNotFound:
    """Test provider "not found" classification."""

    @pytest.mark.parametrize(
        "code", ["NoSuchBucket", "NotFound", "404", "InvalidInstanceID.NotFound"]
    )
    def test_aws_not_found_codes(self, code):
        assert is_not_found(client_error(code))

    def test_cloudformation_missing_stack(self):
        """
        GIVEN a CloudFormation ValidationError saying the stack does not exist
        WHEN is_not_found is called
        THEN it should be classified as not found
        """
        error = client_error("ValidationError", "Stack with id ci-cur-abc does not exist")

        assert is_not_found(error)

    def test_aws_access_denied_is_not_not_found(self):
        assert not is_not_found(client_error("AccessDenied", "Access Denied"))

    def test_azure_resource_not_found(self):
        assert is_not_found(ResourceNotFoundError("gone"))

    def test_azure_http_404(self):
        error = HttpResponseError(message="gone")
        error.status_code = 404

        assert is_not_found(error)

    def test_azure_http_409_is_not_not_found(self):
        error = HttpResponseError(message="conflict")
        error.status_code = 409

        assert not is_not_found(error)

    def test_wrapped_not_found_is_detected(self):
        """
        GIVEN a not found error wrapped in a ResourceOperationError
        WHEN is_not_found is called on the wrapper
        THEN the cause chain should be followed
        """
        wrapped = ResourceOperationError("bucket", "ci-cur-abc", "delete", client_error("NoSuchBucket"))

        assert is_not_found(wrapped)

    def test_none_and_plain_errors(self):
        assert not is_not_found(None)
        assert not is_not_found(RuntimeError("boom"))


@pytest.mark.unit
class TestResourceOperationError:
    def test_message_and_cause(self):
        """
        GIVEN a provider failure while deleting a stack
        WHEN it is wrapped in a ResourceOperationError
        THEN the message names operation, kind and resource, and keeps the cause
        """
        cause = RuntimeError("throttled")
        error = ResourceOperationError("stack", "ci-cur-abc", "delete", cause)

        assert str(error) == "delete stack 'ci-cur-abc': throttled"
        assert error.__cause__ is cause
        assert (error.kind, error.name, error.operation) == ("stack", "ci-cur-abc", "delete")


@pytest.mark.unit
class TestErrorCollection:
    """Test error aggregation, nesting and reporting."""

    def test_empty_collection(self):
        errors = ErrorCollection()

        assert not errors.has_errors()
        assert len(errors) == 0
        assert errors.dump() == "No errors."

    def test_nested_collections_are_flattened_in_order(self):
        """
        GIVEN a collection holding an error, a nested collection and another error
        WHEN it is flattened
        THEN every error appears once in insertion order
        """
        first, second, third = ValueError("a"), ValueError("b"), ValueError("c")
        inner = ErrorCollection()
        inner.append(second)
        errors = ErrorCollection()
        errors.append(first)
        errors.append(inner)
        errors.append(third)

        assert errors.flatten() == [first, second, third]
        assert len(errors) == 3
        assert str(errors) == "collection of 3 errors"

    def test_empty_nested_collection_has_no_errors(self):
        errors = ErrorCollection()
        errors.append(ErrorCollection())

        assert not errors.has_errors()

    def test_dump_lists_every_error(self):
        errors = ErrorCollection()
        errors.append(ValueError("first"))
        inner = ErrorCollection()
        inner.append(ValueError("second"))
        errors.append(inner)

        assert errors.dump() == "- first\n- second\n"

    def test_extend_appends_members(self):
        source = ErrorCollection()
        source.append(ValueError("a"))
        source.append(ValueError("b"))
        errors = ErrorCollection()

        errors.extend(source)

        assert len(errors) == 2

    def test_to_exception_builds_exception_group(self):
        """
        GIVEN a nested collection with two errors
        WHEN to_exception is called
        THEN a CleanupFailedError groups the flattened errors
        """
        inner = ErrorCollection()
        inner.append(ValueError("a"))
        errors = ErrorCollection()
        errors.append(inner)
        errors.append(KeyError("b"))

        group = errors.to_exception("aws cleanup failed")

        assert isinstance(group, CleanupFailedError)
        assert isinstance(group, ExceptionGroup)
        assert len(group.exceptions) == 2
        assert group.message == "aws cleanup failed"
