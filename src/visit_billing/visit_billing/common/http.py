from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from flask import Flask, current_app, jsonify, request

from .validators import require_whole_number
from ..core.exceptions import ConflictError, DomainError, NotFoundError, StorageError, ValidationError

E = TypeVar("E", bound=Enum)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_int(data: dict, key: str) -> int:
    return require_whole_number(data.get(key), key)


def optional_int(data: dict, key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    return require_int(data, key)


def parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def register_error_handlers(app: Flask) -> None:
    def _error(e: DomainError, status: int):
        return jsonify({"error": str(e), "type": type(e).__name__}), status

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        return _error(e, 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return _error(e, 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e: ConflictError):
        return _error(e, 409)

    @app.errorhandler(StorageError)
    def handle_storage(e: StorageError):
        current_app.logger.exception("Storage failure")
        if current_app.config.get("DEBUG"):
            return _error(e, 500)
        return jsonify({"error": "Storage failure", "type": "StorageError"}), 500
