# commission_engine/core/errors.py
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class CommissionEngineError(Exception):
    """
    Base error for ledger / balance / payout operations.

    `code` is machine-stable and is what API clients branch on;
    `message` is for humans.
    """

    code = "commission_engine_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class ValidationError(CommissionEngineError):
    code = "validation_error"
    status_code = 422


class NotFoundError(CommissionEngineError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientBalanceError(CommissionEngineError):
    code = "insufficient_balance"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(CommissionEngineError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class DuplicateTransactionError(CommissionEngineError):
    code = "duplicate_transaction"
    status_code = status.HTTP_409_CONFLICT


async def _commission_engine_error_handler(request: Request, exc: CommissionEngineError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CommissionEngineError, _commission_engine_error_handler)
