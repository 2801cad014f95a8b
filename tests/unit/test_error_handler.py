"""
Tests for error handler middleware and custom exceptions.
"""
import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from tiffinos.api.middleware.error_handler import (
    AppException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    BadRequestException,
    ConflictException,
    InvalidStateTransition,
    ValidationException,
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)


def build_app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    return app


@pytest.mark.unit
def test_app_exception_defaults_to_500():
    exc = AppException("Something broke")

    assert exc.status_code == 500
    assert exc.details == {}


@pytest.mark.unit
def test_not_found_exception():
    exc = NotFoundException("Customer", "123")

    assert exc.message == "Customer with id '123' not found"
    assert exc.status_code == 404
    assert exc.details == {"resource": "Customer", "resource_id": "123"}


@pytest.mark.unit
def test_not_found_exception_without_id():
    assert NotFoundException("Vendor").message == "Vendor not found"


@pytest.mark.unit
@pytest.mark.parametrize("exc, status_code", [
    (UnauthorizedException(), 401),
    (ForbiddenException(), 403),
    (BadRequestException("bad"), 400),
    (ConflictException("clash"), 409),
    (ValidationException("invalid", errors={"amount": "must be positive"}), 422),
])
def test_status_codes(exc, status_code):
    assert exc.status_code == status_code


@pytest.mark.unit
def test_invalid_state_transition_is_a_conflict():
    exc = InvalidStateTransition("Subscription", "completed", "cancelled")

    assert isinstance(exc, ConflictException)
    assert exc.status_code == 409
    assert exc.message == "Subscription cannot move from 'completed' to 'cancelled'"
    assert exc.details == {
        "resource": "Subscription",
        "current_state": "completed",
        "target_state": "cancelled",
    }


@pytest.mark.integration
def test_app_exception_handler_in_route():
    app = build_app()

    @app.get("/test-error")
    async def test_error():
        raise NotFoundException("Customer", "123")

    response = TestClient(app).get("/test-error")

    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "Customer with id '123' not found"
    assert data["details"]["resource"] == "Customer"
    assert "correlation_id" in data


@pytest.mark.integration
def test_validation_error_handler():
    app = build_app()

    class PaymentIn(BaseModel):
        amount: int = Field(..., gt=0)

    @app.post("/test-validation")
    async def test_validation(data: PaymentIn):
        return {"ok": True}

    response = TestClient(app).post("/test-validation", json={"amount": 0})

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "Validation error"
    assert data["details"]["errors"][0]["loc"] == ["body", "amount"]


@pytest.mark.integration
def test_http_exception_handler():
    app = build_app()

    @app.get("/test-http-error")
    async def test_http_error():
        raise StarletteHTTPException(status_code=404, detail="Page not found")

    response = TestClient(app).get("/test-http-error")

    assert response.status_code == 404
    assert response.json()["error"] == "Page not found"


@pytest.mark.integration
def test_unhandled_exception_handler():
    app = build_app()

    @app.get("/test-unhandled")
    async def test_unhandled():
        raise RuntimeError("Unexpected error")

    response = TestClient(app, raise_server_exceptions=False).get("/test-unhandled")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


@pytest.mark.integration
def test_exception_with_correlation_id():
    app = build_app()

    @app.get("/test-correlation")
    async def test_correlation(request: Request):
        request.state.correlation_id = "test-correlation-123"
        raise InvalidStateTransition("Customer", "active", "purged")

    response = TestClient(app).get("/test-correlation")

    assert response.status_code == 409
    assert response.json()["correlation_id"] == "test-correlation-123"
