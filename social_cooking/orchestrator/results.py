"""
操作結果型

オーケストレーターの公開操作はすべて OperationResult を返し、
想定内の失敗で例外を送出しません。
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from ..exceptions import (
    SocialCookingError,
    RepositoryError,
    ValidationError,
    NoActiveEventError,
    InvalidPhaseError,
    IllegalTransitionError,
    RecordNotFoundError,
    ClaimConflictError,
    ConditionFailedError,
)


class ErrorKind(str, Enum):
    """失敗の種類"""
    VALIDATION = "validation"
    NO_ACTIVE_EVENT = "no_active_event"
    INVALID_PHASE = "invalid_phase"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    ILLEGAL_TRANSITION = "illegal_transition"
    REPOSITORY = "repository"


# 例外クラス → 失敗種別（上から順に判定）
_ERROR_KINDS = (
    (ValidationError, ErrorKind.VALIDATION),
    (NoActiveEventError, ErrorKind.NO_ACTIVE_EVENT),
    (InvalidPhaseError, ErrorKind.INVALID_PHASE),
    (IllegalTransitionError, ErrorKind.ILLEGAL_TRANSITION),
    (RecordNotFoundError, ErrorKind.NOT_FOUND),
    (ClaimConflictError, ErrorKind.CONFLICT),
    (ConditionFailedError, ErrorKind.CONFLICT),
    (RepositoryError, ErrorKind.REPOSITORY),
)


class OperationResult(BaseModel):
    """操作結果"""
    ok: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "OperationResult":
        return cls(ok=False, error=error, message=message)

    @classmethod
    def from_exception(cls, error: SocialCookingError) -> "OperationResult":
        """業務例外を失敗結果に変換"""
        for exc_type, kind in _ERROR_KINDS:
            if isinstance(error, exc_type):
                return cls.failure(kind, str(error))
        return cls.failure(ErrorKind.REPOSITORY, str(error))
