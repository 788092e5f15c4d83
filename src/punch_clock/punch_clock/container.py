from __future__ import annotations

from dataclasses import dataclass

from .audit.mysql_audit_sink import MySQLAuditSink
from .core.constants import DEFAULT_DAILY_TARGET_SECONDS, DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .evidence.mysql_evidence_store import MySQLEvidenceStore
from .organizations.mysql_organization_repository import MySQLOrganizationRepository
from .organizations.service import WorkPolicyService
from .punches.mysql_punch_repository import MySQLPunchRepository
from .punches.service import PunchService
from .timesheet.calculator.standard_calculator import StandardDayCalculator
from .timesheet.service import TimesheetService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    organizations_repo: MySQLOrganizationRepository
    punches_repo: MySQLPunchRepository
    evidence_store: MySQLEvidenceStore
    audit_sink: MySQLAuditSink

    work_policy_service: WorkPolicyService
    punch_service: PunchService
    timesheet_service: TimesheetService


def build_container(
    *,
    db_config: dict,
    default_timezone: str = DEFAULT_TIMEZONE,
    daily_target_seconds: int = DEFAULT_DAILY_TARGET_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        pool_size=int(db_config.get("pool_size", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    organizations_repo = MySQLOrganizationRepository(conn)
    punches_repo = MySQLPunchRepository(conn)
    evidence_store = MySQLEvidenceStore(conn)
    audit_sink = MySQLAuditSink(conn)

    work_policy_service = WorkPolicyService(
        organizations_repo,
        default_timezone=default_timezone,
        default_daily_target_seconds=daily_target_seconds,
    )
    calculator = StandardDayCalculator()
    punch_service = PunchService(
        punches_repo,
        work_policy_service,
        evidence_store,
        audit_sink,
        calculator=calculator,
    )
    timesheet_service = TimesheetService(punches_repo, work_policy_service, calculator=calculator)

    return Container(
        conn=conn,
        organizations_repo=organizations_repo,
        punches_repo=punches_repo,
        evidence_store=evidence_store,
        audit_sink=audit_sink,
        work_policy_service=work_policy_service,
        punch_service=punch_service,
        timesheet_service=timesheet_service,
    )
