"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; `register_exception_handlers`
renders them as `{"detail": ...}` so routers stay free of try/except blocks.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class EmptyCartError(BusinessRuleError):
    def __init__(self):
        super().__init__("Cart is empty")


class InsufficientStockError(BusinessRuleError):
    def __init__(self, product_name: str):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_name = product_name


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(ConflictError):
    pass


class PermissionDeniedError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ExternalServiceError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
