from __future__ import annotations

from flask import Flask, request

from ..common.http import body_date, handle_error, json_body, ok, query_date
from ..container import Container
from ..core.enums import PeriodType
from ..core.exceptions import ValidationError
from .model import DUCReportDraft, ReportPeriod


def _optional_int(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Expected a number, got {value!r}")


def _period(body: dict) -> ReportPeriod:
    try:
        kind = PeriodType(str(body.get("period_type") or PeriodType.DAY.value).lower())
    except ValueError:
        raise ValidationError("period_type must be day, week or month")
    if kind == PeriodType.WEEK:
        return ReportPeriod.for_week(body.get("week") or "")
    if kind == PeriodType.MONTH:
        return ReportPeriod.for_month(body.get("month") or "")
    return ReportPeriod.for_day(body_date(body))


def register(app: Flask, container: Container) -> None:
    reports = container.reconciliation_service

    # Daily missort summary
    @app.route("/api/daily-missort-summary-reports", methods=["GET"], endpoint="list_missort_reports")
    def list_missort_reports():
        try:
            return ok([r.to_dict() for r in reports.list_missort_reports()])
        except Exception as e:
            return handle_error(e, "fetch daily missort summary reports")

    @app.route("/api/daily-missort-summary-reports/generate", methods=["POST"], endpoint="generate_missort_summary")
    def generate_missort_summary():
        body = json_body({})
        try:
            summary = reports.generate_missort_summary(
                body_date(body), sub_depot_id=_optional_int(body.get("sub_depot_id"))
            )
            return ok(summary.to_dict())
        except Exception as e:
            return handle_error(e, "generate daily missort summary")

    @app.route("/api/daily-missort-summary-reports", methods=["POST"], endpoint="save_missort_report")
    def save_missort_report():
        body = json_body({})
        try:
            summary = reports.generate_missort_summary(
                body_date(body), sub_depot_id=_optional_int(body.get("sub_depot_id"))
            )
            saved = reports.save_missort_summary(
                summary,
                submitted_by=body.get("submitted_by_team_member_id"),
                notes=body.get("notes"),
            )
            return ok(saved.to_dict(), 201)
        except Exception as e:
            return handle_error(e, "save daily missort summary report")

    # Cage return
    @app.route("/api/cage-return-reports", methods=["GET"], endpoint="list_cage_return_reports")
    def list_cage_return_reports():
        try:
            found = reports.list_cage_return_reports(report_date=query_date(required=False))
            return ok([r.to_dict() for r in found])
        except Exception as e:
            return handle_error(e, "fetch cage return reports")

    @app.route("/api/cage-return-reports/sheet", methods=["GET"], endpoint="cage_return_sheet")
    def cage_return_sheet():
        try:
            sheet = reports.open_cage_return_sheet(
                query_date(), _optional_int(request.args.get("sub_depot_id"))
            )
            return ok(sheet.to_dict())
        except Exception as e:
            return handle_error(e, "load cage return sheet")

    @app.route("/api/cage-return-reports", methods=["POST"], endpoint="save_cage_return_report")
    def save_cage_return_report():
        body = json_body({})
        try:
            sheet = reports.open_cage_return_sheet(body_date(body), _optional_int(body.get("sub_depot_id")))
            for pair in sheet.pairs:
                pair.not_returned = False
            unknown = set()
            for cage in body.get("not_returned") or []:
                round_id, courier_id = str(cage.get("round_id")), str(cage.get("courier_id") or "")
                try:
                    sheet.mark(round_id, courier_id)
                except KeyError:
                    unknown.add((round_id, courier_id))
            if unknown:
                raise ValidationError(
                    "Not on this sheet: " + ", ".join(f"round {r} / {c}" for r, c in sorted(unknown))
                )
            sheet.notes = body.get("notes")
            sheet.submitted_by_team_member_id = body.get("submitted_by_team_member_id")
            return ok(reports.save_cage_return_sheet(sheet).to_dict(), 201)
        except Exception as e:
            return handle_error(e, "save cage return report")

    # DUC final report
    @app.route("/api/duc-final-reports", methods=["GET"], endpoint="list_duc_reports")
    def list_duc_reports():
        try:
            return ok([r.to_dict() for r in reports.list_duc_reports()])
        except Exception as e:
            return handle_error(e, "fetch DUC final reports")

    @app.route("/api/duc-final-reports/draft", methods=["GET"], endpoint="duc_draft")
    def duc_draft():
        try:
            return ok(reports.open_duc_draft(query_date()).to_dict())
        except Exception as e:
            return handle_error(e, "load DUC report draft")

    @app.route("/api/duc-final-reports/missing-summary", methods=["GET"], endpoint="duc_missing_summary")
    def duc_missing_summary():
        try:
            return ok(reports.import_missing_summary(query_date()).to_dict())
        except Exception as e:
            return handle_error(e, "import missing parcels summary")

    @app.route("/api/duc-final-reports", methods=["POST"], endpoint="submit_duc_report")
    def submit_duc_report():
        body = json_body({})
        try:
            draft = DUCReportDraft(
                date=body_date(body),
                submitted_by_team_member_id=body.get("submitted_by_team_member_id"),
                sub_depot_id=_optional_int(body.get("sub_depot_id")),
                failed_rounds=list(body.get("failed_rounds") or []),
                total_returns=body.get("total_returns") or 0,
                segregated_parcels=list(body.get("segregated_parcels") or []),
                notes=body.get("notes"),
                summary_imported=bool(body.get("summary_imported") or body.get("missing_parcels_summary")),
            )
            return ok(reports.submit_duc_report(draft).to_dict(), 201)
        except Exception as e:
            return handle_error(e, "submit DUC report")

    @app.route("/api/reports/courier-stats", methods=["GET"], endpoint="courier_stats")
    def courier_stats():
        try:
            return ok([s.to_dict() for s in reports.courier_stats(query_date())])
        except Exception as e:
            return handle_error(e, "compute courier stats")

    # Weekly missing summary
    @app.route("/api/weekly-missing-summary-reports", methods=["GET"], endpoint="list_weekly_missing_reports")
    def list_weekly_missing_reports():
        try:
            return ok([r.to_dict() for r in reports.list_weekly_missing_reports()])
        except Exception as e:
            return handle_error(e, "fetch weekly missing summary reports")

    @app.route(
        "/api/weekly-missing-summary-reports/generate", methods=["POST"], endpoint="generate_weekly_missing_summary"
    )
    def generate_weekly_missing_summary():
        body = json_body({})
        try:
            return ok(reports.generate_weekly_missing_summary(body.get("week") or "").to_dict())
        except Exception as e:
            return handle_error(e, "generate weekly missing summary")

    @app.route("/api/weekly-missing-summary-reports", methods=["POST"], endpoint="save_weekly_missing_report")
    def save_weekly_missing_report():
        body = json_body({})
        try:
            summary = reports.generate_weekly_missing_summary(body.get("week") or "")
            saved = reports.save_weekly_missing_summary(
                summary,
                submitted_by=body.get("submitted_by_team_member_id"),
                notes=body.get("notes"),
            )
            return ok(saved.to_dict(), 201)
        except Exception as e:
            return handle_error(e, "save weekly missing summary report")

    # Client missing league
    @app.route("/api/client-missing-league-reports", methods=["GET"], endpoint="list_client_league_reports")
    def list_client_league_reports():
        try:
            return ok([r.to_dict() for r in reports.list_client_league_reports()])
        except Exception as e:
            return handle_error(e, "fetch client missing league reports")

    @app.route("/api/client-missing-league-reports/generate", methods=["POST"], endpoint="generate_client_league")
    def generate_client_league():
        body = json_body({})
        try:
            return ok(reports.generate_client_league(_period(body)).to_dict())
        except Exception as e:
            return handle_error(e, "generate client missing league")

    @app.route("/api/client-missing-league-reports", methods=["POST"], endpoint="save_client_league_report")
    def save_client_league_report():
        body = json_body({})
        try:
            league = reports.generate_client_league(_period(body))
            saved = reports.save_client_league(league, generated_by=body.get("generated_by"))
            return ok(saved.to_dict(), 201)
        except Exception as e:
            return handle_error(e, "save client missing league report")
