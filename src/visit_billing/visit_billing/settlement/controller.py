from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, parse_enum, require_int
from ..core.enums import PaymentMethod, SplitType
from ..core.exceptions import ValidationError
from ..container import Container
from .model import PaymentInput, SplitRequest


def _method(data: dict, *, required: bool):
    value = data.get("method")
    if value is None:
        if required:
            raise ValidationError("method is required")
        return None
    return parse_enum(PaymentMethod, value, "method")


def _guest_ids(data: dict) -> list:
    ids = data.get("guest_ids")
    if not isinstance(ids, list):
        raise ValidationError("guest_ids must be a list")
    return ids


def _split_requests(data: dict) -> list[SplitRequest]:
    raw = data.get("splits")
    if not isinstance(raw, list) or not raw:
        raise ValidationError("splits must be a non-empty list")
    requests = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("each split must be an object")
        requests.append(
            SplitRequest(
                guest_id=require_int(entry, "guest_id"),
                amount=require_int(entry, "amount"),
                method=_method(entry, required=False),
                split_type=parse_enum(SplitType, entry.get("split_type", SplitType.INDIVIDUAL.value), "split_type"),
                notes=entry.get("notes"),
            )
        )
    return requests


def register(app: Flask, container: Container) -> None:
    bills = container.bill_service
    settlement = container.settlement_service
    validator = container.consistency_validator

    @app.route("/guests/<int:guest_id>/bill", methods=["GET"], endpoint="guest_bill")
    def guest_bill(guest_id: int):
        return jsonify(bills.calculate_individual_bill(guest_id))

    @app.route("/visits/<int:visit_id>/bill", methods=["GET"], endpoint="group_bill")
    def group_bill(visit_id: int):
        return jsonify(settlement.generate_group_bill(visit_id))

    @app.route("/visits/<int:visit_id>/splits", methods=["GET"], endpoint="list_splits")
    def list_splits(visit_id: int):
        return jsonify(list(settlement.list_visit_splits(visit_id)))

    @app.route("/visits/<int:visit_id>/splits", methods=["POST"], endpoint="create_splits")
    def create_splits(visit_id: int):
        created = settlement.process_split_billing(visit_id, _split_requests(json_body()))
        return jsonify(created), 201

    @app.route("/visits/<int:visit_id>/split-evenly", methods=["POST"], endpoint="split_evenly")
    def split_evenly(visit_id: int):
        data = json_body()
        created = settlement.split_bill_evenly(visit_id, _guest_ids(data), _method(data, required=False))
        return jsonify(created), 201

    @app.route("/splits/<int:split_id>/confirm", methods=["POST"], endpoint="confirm_split")
    def confirm_split(split_id: int):
        return jsonify(settlement.confirm_split(split_id))

    @app.route("/splits/<int:split_id>/cancel", methods=["POST"], endpoint="cancel_split")
    def cancel_split(split_id: int):
        return jsonify(settlement.cancel_split(split_id))

    @app.route("/guests/<int:guest_id>/payments", methods=["POST"], endpoint="pay_guest")
    def pay_guest(guest_id: int):
        data = json_body()
        payment = PaymentInput(
            method=_method(data, required=True),
            amount=require_int(data, "amount"),
            notes=data.get("notes"),
        )
        return jsonify(settlement.process_individual_payment(guest_id, payment)), 201

    @app.route("/visits/<int:visit_id>/checkout", methods=["POST"], endpoint="partial_checkout")
    def partial_checkout(visit_id: int):
        data = json_body()
        result = settlement.process_partial_checkout(visit_id, _guest_ids(data), _method(data, required=True))
        return jsonify(result)

    @app.route("/visits/<int:visit_id>/consistency", methods=["GET"], endpoint="billing_consistency")
    def billing_consistency(visit_id: int):
        return jsonify(validator.validate_billing_consistency(visit_id))
