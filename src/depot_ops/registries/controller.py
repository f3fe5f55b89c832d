from __future__ import annotations

from dataclasses import asdict

from flask import Flask, request

from ..common.http import handle_error, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    registries = container.registry_service

    listings = {
        "clients": registries.clients,
        "couriers": registries.couriers,
        "sub-depots": registries.sub_depots,
        "team": registries.team,
        "delivery-units": registries.delivery_units,
    }

    def _make_view(name, lister):
        def view():
            try:
                return ok([asdict(item) for item in lister()])
            except Exception as e:
                return handle_error(e, f"fetch {name}")

        return view

    for name, lister in listings.items():
        app.add_url_rule(f"/api/{name}", endpoint=f"list_{name.replace('-', '_')}", view_func=_make_view(name, lister))

    @app.route("/api/rounds", methods=["GET"], endpoint="list_rounds")
    def list_rounds():
        try:
            sub_depot_id = request.args.get("sub_depot_id", type=int)
            return ok([asdict(r) for r in registries.rounds(sub_depot_id=sub_depot_id)])
        except Exception as e:
            return handle_error(e, "fetch rounds")

    @app.route("/api/registries/reload", methods=["POST"], endpoint="reload_registries")
    def reload_registries():
        try:
            registries.reload()
            return ok({"reloaded": True})
        except Exception as e:
            return handle_error(e, "reload registries")
