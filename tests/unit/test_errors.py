"""Unit tests for the AppError hierarchy and its exception handlers."""

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from errors import (
    AppError,
    AuthenticationError,
    NotFoundError,
    StorageError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (AuthenticationError, 401, "authentication_error"),
            (NotFoundError, 404, "not_found"),
            (StorageError, 500, "storage_error"),
            (AppError, 500, "internal_error"),
        ],
        ids=["validation", "authentication", "not_found", "storage", "base"],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("boom")
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "boom"

    def test_subclasses_are_app_errors(self):
        assert issubclass(StorageError, AppError)


class TestAppErrorToDict:
    def test_basic(self):
        e = ValidationError("emailId is required")
        assert e.to_dict() == {"error": "emailId is required", "code": "validation_error"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "recipient"}, "field", "recipient"),
            ({"details": {"max": 500}}, "details", {"max": 500}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/fail")
    def fail():
        raise StorageError("storage operation failed")

    @app.get("/limited")
    def limited(limit: int = Query(ge=1)):
        return {"limit": limit}

    return app


class TestHandlers:
    def test_app_error_rendered_as_json(self):
        with TestClient(_build_app()) as client:
            resp = client.get("/fail")
        assert resp.status_code == 500
        assert resp.json() == {"error": "storage operation failed", "code": "storage_error"}

    def test_request_validation_mapped_to_400(self):
        with TestClient(_build_app()) as client:
            resp = client.get("/limited", params={"limit": 0})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "limit"
