from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .attendance.factory import MatchStrategyFactory
from .attendance.matcher import StudentMatcher
from .attendance.service import AttendanceService
from .common.datetime_utils import coerce_date
from .core.constants import DEFAULT_SAVE_RETRIES, DEFAULT_SAVE_TIMEOUT_SECONDS, DEFAULT_SCHOOL_START_DATE
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import AttendanceReportService
from .schedules.model import SchoolCalendar
from .schedules.service import ScheduleService
from .store.mysql_document_store import MySQLDocumentStore
from .store.repository import DocumentStore
from .students.service import RosterService
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    store: DocumentStore

    auth_service: AuthService
    user_service: UserService
    roster_service: RosterService
    schedule_service: ScheduleService
    attendance_service: AttendanceService
    report_service: AttendanceReportService

    conn: Optional[DatabaseConnection] = None


def build_services(
    store: DocumentStore,
    *,
    school_start_date: date | str = DEFAULT_SCHOOL_START_DATE,
    save_timeout: float = DEFAULT_SAVE_TIMEOUT_SECONDS,
    save_retries: int = DEFAULT_SAVE_RETRIES,
    allow_substring_match: bool = True,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    strategy_factory = MatchStrategyFactory(allow_substring=allow_substring_match)
    roster_service = RosterService(store)

    return Container(
        store=store,
        auth_service=AuthService(store),
        user_service=UserService(store),
        roster_service=roster_service,
        schedule_service=ScheduleService(SchoolCalendar(coerce_date(school_start_date))),
        attendance_service=AttendanceService(
            store,
            roster_service,
            strategy_factory=strategy_factory,
            save_timeout=save_timeout,
            save_retries=save_retries,
        ),
        report_service=AttendanceReportService(matcher=StudentMatcher(strategy_factory.ordered())),
        conn=conn,
    )


def build_container(*, db_config: dict, **settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return build_services(MySQLDocumentStore(conn), conn=conn, **settings)
