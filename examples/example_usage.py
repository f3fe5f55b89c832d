"""Example: drive the service layer directly, without Flask.

Controllers stay thin; the ledger, gate and report services carry the rules.
"""

import importlib
from datetime import date

from config import get_settings_module

from depot_ops.container import build_container
from depot_ops.parcels.model import NewParcelScan


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    outcome = container.parcel_workflow.add_entry(
        "example",
        NewParcelScan(
            barcode="h00ab12cd34ef56g",
            round_id="1",
            courier_id="C001",
            sorter_team_member_id="TM001",
            client_id=2,
            sub_depot_id=71,
        ),
    )
    if not outcome.executed:
        session = outcome.session
        while session.is_active:
            print(session.question, "-> yes")
            container.parcel_workflow.answer("example", True)
        print("Saved:", session.result.barcode)

    summary = container.reconciliation_service.import_missing_summary(date.today())
    print(f"Missing today: {summary.total_missing}, recovery rate {summary.recovery_rate}%")


if __name__ == "__main__":
    main()
