from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, optional_int, require_int
from ..core.exceptions import ValidationError
from ..container import Container
from .model import GuestShare


def _shares(data: dict) -> list[GuestShare]:
    raw = data.get("shares")
    if not isinstance(raw, list):
        raise ValidationError("shares must be a list of {guest_id, percentage}")
    shares = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("shares must be a list of {guest_id, percentage}")
        try:
            percentage = float(entry.get("percentage"))
        except (TypeError, ValueError):
            raise ValidationError("percentage must be a number")
        shares.append(GuestShare(guest_id=require_int(entry, "guest_id"), percentage=percentage))
    return shares


def _quantity(data: dict, key: str = "quantity"):
    value = data.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")


def register(app: Flask, container: Container) -> None:
    attribution = container.attribution_service

    @app.route("/order-items/<int:order_item_id>/attribution", methods=["POST"], endpoint="attribute_exclusive")
    def attribute_exclusive(order_item_id: int):
        data = json_body()
        quantity = _quantity(data)
        if quantity is None:
            raise ValidationError("quantity is required")
        guest_order = attribution.attribute_exclusive(
            order_item_id,
            require_int(data, "guest_id"),
            quantity,
            require_int(data, "amount"),
        )
        return jsonify(guest_order), 201

    @app.route("/order-items/<int:order_item_id>/shares", methods=["POST"], endpoint="attribute_shared")
    def attribute_shared(order_item_id: int):
        return jsonify(attribution.attribute_shared(order_item_id, _shares(json_body()))), 201

    @app.route("/guest-orders/<int:guest_order_id>", methods=["PATCH"], endpoint="reassign_guest_order")
    def reassign_guest_order(guest_order_id: int):
        data = json_body()
        guest_order = attribution.reassign(
            guest_order_id,
            require_int(data, "guest_id"),
            new_quantity=_quantity(data),
            new_amount=optional_int(data, "amount"),
        )
        return jsonify(guest_order)

    @app.route("/guest-orders/<int:guest_order_id>", methods=["DELETE"], endpoint="remove_guest_order")
    def remove_guest_order(guest_order_id: int):
        attribution.remove_attribution(guest_order_id)
        return "", 204

    @app.route("/guests/<int:guest_id>/orders", methods=["GET"], endpoint="guest_orders")
    def guest_orders(guest_id: int):
        return jsonify(list(attribution.get_by_guest(guest_id)))

    @app.route("/guests/<int:guest_id>/orders/transfer", methods=["POST"], endpoint="transfer_guest_orders")
    def transfer_guest_orders(guest_id: int):
        data = json_body()
        order_ids = data.get("order_ids") or None
        if order_ids is not None and not isinstance(order_ids, list):
            raise ValidationError("order_ids must be a list")
        moved = attribution.transfer_all(guest_id, require_int(data, "to_guest_id"), order_ids)
        return jsonify({"moved": moved})

    @app.route("/visits/<int:visit_id>/orders", methods=["GET"], endpoint="visit_orders_by_guest")
    def visit_orders_by_guest(visit_id: int):
        grouped = attribution.get_visit_orders_by_guest(visit_id)
        return jsonify({str(guest_id): details for guest_id, details in grouped.items()})
