from __future__ import annotations

from flask import Flask, request

from ..common.http import fail, handle_error, json_body, ok, query_date
from ..container import Container
from ..core.exceptions import ValidationError
from ..escalation.gate import GateOutcome
from .model import NewParcelScan


def register(app: Flask, container: Container) -> None:
    ledger = container.parcel_ledger
    workflow = container.parcel_workflow

    def _outcome(outcome: GateOutcome, created: bool):
        if outcome.executed:
            return ok(outcome.result.to_dict(), 201 if created else 200)
        return ok({"checklist": outcome.session.to_dict()}, 202)

    @app.route("/api/missing-parcels", methods=["GET"], endpoint="list_missing_parcels")
    def list_missing_parcels():
        try:
            entries = ledger.list_entries(
                date_added=query_date(required=False),
                courier_id=request.args.get("courier_id") or None,
                round_id=request.args.get("round_id") or None,
            )
            return ok([row.to_dict() for row in ledger.log_rows(entries)])
        except Exception as e:
            return handle_error(e, "fetch missing parcels")

    @app.route("/api/missing-parcels", methods=["POST"], endpoint="create_missing_parcels")
    def create_missing_parcels():
        try:
            body = json_body([])
            if isinstance(body, dict):
                body = [body]
            if not isinstance(body, list):
                raise ValidationError("Expected a JSON array of parcels")
            result = workflow.add_batch([NewParcelScan.from_payload(item or {}) for item in body])
            return ok([e.to_dict() for e in result.persisted], 201, skipped=result.skipped)
        except Exception as e:
            return handle_error(e, "create missing parcels")

    @app.route("/api/missing-parcels/additional-details", methods=["GET"], endpoint="missing_parcel_details")
    def missing_parcel_details():
        try:
            entries = ledger.additional_details(query_date())
            return ok([row.to_dict() for row in ledger.log_rows(entries)])
        except Exception as e:
            return handle_error(e, "fetch additional details")

    @app.route("/api/missing-parcels/recovery-snapshot", methods=["GET"], endpoint="recovery_snapshot")
    def recovery_snapshot():
        try:
            states = container.recovery_tracker.snapshot(query_date())
            return ok(
                [
                    {
                        "id": s.entry_id,
                        "barcode": s.barcode,
                        "is_recovered": s.is_recovered,
                        "recovery_date": s.recovery_date.isoformat() if s.recovery_date else None,
                    }
                    for s in states
                ]
            )
        except Exception as e:
            return handle_error(e, "fetch recovery snapshot")

    @app.route("/api/missing-parcels/<entry_id>", methods=["GET"], endpoint="get_missing_parcel")
    def get_missing_parcel(entry_id: str):
        try:
            entry = ledger.get(entry_id)
            return ok(ledger.log_rows([entry])[0].to_dict())
        except Exception as e:
            return handle_error(e, "fetch missing parcel")

    @app.route("/api/missing-parcels/<entry_id>", methods=["PUT"], endpoint="update_missing_parcel")
    def update_missing_parcel(entry_id: str):
        workflow_id = request.headers.get("X-Workflow-Id") or "default"
        try:
            return _outcome(workflow.edit_entry(workflow_id, entry_id, json_body({})), created=False)
        except Exception as e:
            return handle_error(e, "update missing parcel")

    @app.route("/api/missing-parcels/<entry_id>/recovery", methods=["POST"], endpoint="set_parcel_recovery")
    def set_parcel_recovery(entry_id: str):
        body = json_body({})
        tracker = container.recovery_tracker
        try:
            if "recovered" not in body:
                entry = tracker.toggle(entry_id)
            elif body["recovered"]:
                entry = tracker.mark_recovered(entry_id, notes=body.get("notes"))
            else:
                entry = tracker.mark_missing(entry_id)
            return ok(entry.to_dict())
        except Exception as e:
            return handle_error(e, "update recovery status")

    # Tracking
    @app.route("/api/missing-parcels/tracking", methods=["GET"], endpoint="tracking_statuses")
    def tracking_statuses():
        try:
            entries = ledger.list_entries(date_added=query_date(required=False))
            report = container.tracking_refresher.auto_check(entries)
            statuses = container.tracking_refresher.statuses()
            return ok(
                [statuses[e.id].to_dict() for e in entries if e.id in statuses],
                refresh=report.to_dict(),
            )
        except Exception as e:
            return handle_error(e, "fetch tracking statuses")

    @app.route("/api/missing-parcels/tracking/refresh", methods=["POST"], endpoint="refresh_tracking")
    def refresh_tracking():
        try:
            entries = ledger.list_entries(date_added=query_date(required=False))
            report = container.tracking_refresher.refresh_all(entries)
            if report.throttled:
                return fail(f"Please wait {int(report.retry_after) + 1}s before refreshing again", 429)
            return ok(report.to_dict())
        except Exception as e:
            return handle_error(e, "refresh tracking")

    # Gated workflow
    @app.route("/api/workflows/<workflow_id>/parcels", methods=["POST"], endpoint="workflow_add_parcel")
    def workflow_add_parcel(workflow_id: str):
        try:
            candidate = NewParcelScan.from_payload(json_body({}))
            return _outcome(workflow.add_entry(workflow_id, candidate), created=True)
        except Exception as e:
            return handle_error(e, "add missing parcel")

    @app.route("/api/workflows/<workflow_id>/parcels/<entry_id>", methods=["PUT"], endpoint="workflow_edit_parcel")
    def workflow_edit_parcel(workflow_id: str, entry_id: str):
        try:
            return _outcome(workflow.edit_entry(workflow_id, entry_id, json_body({})), created=False)
        except Exception as e:
            return handle_error(e, "update missing parcel")

    @app.route("/api/workflows/<workflow_id>/checklist", methods=["GET"], endpoint="workflow_checklist")
    def workflow_checklist(workflow_id: str):
        session = workflow.current(workflow_id)
        if session is None:
            return fail(f"Workflow {workflow_id} has no checklist", 404)
        return ok(session.to_dict())

    @app.route("/api/workflows/<workflow_id>/checklist/answer", methods=["POST"], endpoint="workflow_answer")
    def workflow_answer(workflow_id: str):
        body = json_body({})
        try:
            if "yes" not in body:
                raise ValidationError("'yes' (true/false) is required")
            session = workflow.answer(workflow_id, bool(body["yes"]))
            result = session.result.to_dict() if session.result is not None else None
            return ok({"checklist": session.to_dict(), "result": result})
        except Exception as e:
            return handle_error(e, "answer checklist")

    @app.route("/api/workflows/<workflow_id>/checklist/cancel", methods=["POST"], endpoint="workflow_cancel")
    def workflow_cancel(workflow_id: str):
        try:
            return ok({"checklist": workflow.cancel(workflow_id).to_dict()})
        except Exception as e:
            return handle_error(e, "cancel checklist")
