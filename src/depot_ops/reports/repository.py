from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import (
    CageReturnReport,
    ClientMissingLeagueReport,
    DailyMissortSummaryReport,
    DUCFinalReport,
    WeeklyMissingSummaryReport,
)


class DailyMissortReportRepository(Protocol):
    def get_daily_missort(self, report_id: str) -> Optional[DailyMissortSummaryReport]:
        raise NotImplementedError

    def list_daily_missort(self) -> Sequence[DailyMissortSummaryReport]:
        raise NotImplementedError

    def upsert_daily_missort(self, report: DailyMissortSummaryReport) -> DailyMissortSummaryReport:
        raise NotImplementedError


class CageReturnReportRepository(Protocol):
    def get_cage_return(self, report_id: str) -> Optional[CageReturnReport]:
        raise NotImplementedError

    def list_cage_returns(self, *, report_date: Optional[date] = None) -> Sequence[CageReturnReport]:
        raise NotImplementedError

    def upsert_cage_return(self, report: CageReturnReport) -> CageReturnReport:
        raise NotImplementedError


class DUCReportRepository(Protocol):
    def get_duc(self, report_id: str) -> Optional[DUCFinalReport]:
        raise NotImplementedError

    def list_duc(self) -> Sequence[DUCFinalReport]:
        raise NotImplementedError

    def upsert_duc(self, report: DUCFinalReport) -> DUCFinalReport:
        raise NotImplementedError


class WeeklyMissingReportRepository(Protocol):
    def get_weekly_missing(self, report_id: str) -> Optional[WeeklyMissingSummaryReport]:
        raise NotImplementedError

    def list_weekly_missing(self) -> Sequence[WeeklyMissingSummaryReport]:
        raise NotImplementedError

    def upsert_weekly_missing(self, report: WeeklyMissingSummaryReport) -> WeeklyMissingSummaryReport:
        raise NotImplementedError


class ClientLeagueReportRepository(Protocol):
    def get_client_league(self, report_id: str) -> Optional[ClientMissingLeagueReport]:
        raise NotImplementedError

    def list_client_league(self) -> Sequence[ClientMissingLeagueReport]:
        raise NotImplementedError

    def upsert_client_league(self, report: ClientMissingLeagueReport) -> ClientMissingLeagueReport:
        raise NotImplementedError
