from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, optional_int, parse_enum, require_int
from ..core.enums import GuestType
from ..container import Container


def register(app: Flask, container: Container) -> None:
    roster = container.roster_service

    @app.route("/visits/<int:visit_id>/guests", methods=["GET"], endpoint="list_guests")
    def list_guests(visit_id: int):
        return jsonify(list(roster.list_guests(visit_id)))

    @app.route("/visits/<int:visit_id>/guests", methods=["POST"], endpoint="add_guest")
    def add_guest(visit_id: int):
        data = json_body()
        guest = roster.add_guest(
            visit_id,
            optional_int(data, "customer_id"),
            parse_enum(GuestType, data.get("guest_type", GuestType.COMPANION.value), "guest_type"),
            seat_position=optional_int(data, "seat_position"),
            is_primary_payer=bool(data.get("is_primary_payer", False)),
        )
        return jsonify(guest), 201

    @app.route("/guests/<int:guest_id>", methods=["GET"], endpoint="get_guest")
    def get_guest(guest_id: int):
        return jsonify(roster.get_guest(guest_id))

    @app.route("/guests/<int:guest_id>", methods=["PATCH"], endpoint="update_guest")
    def update_guest(guest_id: int):
        data = json_body()
        guest_type = data.get("guest_type")
        guest = roster.update_guest_info(
            guest_id,
            guest_type=parse_enum(GuestType, guest_type, "guest_type") if guest_type else None,
            seat_position=optional_int(data, "seat_position"),
        )
        return jsonify(guest)

    @app.route("/guests/<int:guest_id>", methods=["DELETE"], endpoint="remove_guest")
    def remove_guest(guest_id: int):
        cascade = request.args.get("cascade", "0").lower() in {"1", "true", "yes"}
        roster.remove_guest(guest_id, cascade=cascade)
        return "", 204

    @app.route("/guests/<int:guest_id>/transfer", methods=["POST"], endpoint="transfer_guest")
    def transfer_guest(guest_id: int):
        data = json_body()
        return jsonify(roster.transfer_guest(guest_id, require_int(data, "visit_id")))

    @app.route("/guests/<int:guest_id>/checkout", methods=["POST"], endpoint="check_out_guest")
    def check_out_guest(guest_id: int):
        return jsonify(roster.check_out_guest(guest_id))

    @app.route("/visits/<int:visit_id>/primary-payer", methods=["POST"], endpoint="set_primary_payer")
    def set_primary_payer(visit_id: int):
        data = json_body()
        return jsonify(roster.set_primary_payer(visit_id, require_int(data, "guest_id")))
