"""
Unit tests for operation results
"""

from social_cooking.exceptions import (
    ClaimConflictError,
    ConditionFailedError,
    DocumentNotFoundError,
    IllegalTransitionError,
    RepositoryError,
)
from social_cooking.orchestrator import ErrorKind, OperationResult


def test_success_is_truthy():
    result = OperationResult.success("evt-1")

    assert result
    assert result.value == "evt-1"
    assert result.error is None


def test_failure_is_falsy():
    result = OperationResult.failure(ErrorKind.VALIDATION, "title is required")

    assert not result
    assert result.message == "title is required"


def test_exception_mapping():
    assert OperationResult.from_exception(IllegalTransitionError("x")).error == ErrorKind.ILLEGAL_TRANSITION
    assert OperationResult.from_exception(ClaimConflictError("x")).error == ErrorKind.CONFLICT
    assert OperationResult.from_exception(ConditionFailedError("x")).error == ErrorKind.CONFLICT
    assert OperationResult.from_exception(DocumentNotFoundError("x")).error == ErrorKind.REPOSITORY
    assert OperationResult.from_exception(RepositoryError("x")).error == ErrorKind.REPOSITORY
