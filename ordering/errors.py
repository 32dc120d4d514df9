"""
Domain exceptions raised by services.

Routers translate them to HTTP responses with :func:`to_http`; services stay
free of FastAPI imports.
"""
from typing import List, Optional

from fastapi import HTTPException


class OrderingError(Exception):
    status_code = 400

    def __init__(self, detail: str, *, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(OrderingError):
    status_code = 404


class ValidationFailed(OrderingError):
    status_code = 422

    def __init__(self, detail: str, messages: Optional[List[str]] = None):
        super().__init__(detail)
        self.messages = list(messages or [detail])


class InvalidTransition(OrderingError):
    status_code = 409


class PromotionExpired(OrderingError):
    status_code = 409


class RestaurantClosed(OrderingError):
    status_code = 409


class MinimumOrderNotMet(OrderingError):
    status_code = 422


class PermissionDenied(OrderingError):
    status_code = 403


def to_http(exc: OrderingError) -> HTTPException:
    detail = exc.detail
    if isinstance(exc, ValidationFailed) and exc.messages != [exc.detail]:
        detail = {"message": exc.detail, "errors": exc.messages}
    return HTTPException(status_code=exc.status_code, detail=detail)
