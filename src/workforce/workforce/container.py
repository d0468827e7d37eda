from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .core.settings import ImportConfig
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.resolver import EmployeeResolver
from .history.mysql_history_repository import MySQLUploadHistoryRepository
from .history.service import UploadHistoryService
from .ingest.persistence import BatchPersistenceEngine, RetryPolicy
from .ingest.service import AttendanceImportService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    import_config: ImportConfig

    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    history_repo: MySQLUploadHistoryRepository

    history_service: UploadHistoryService
    import_service: AttendanceImportService


def build_container(*, db_config: dict, import_config: dict | None = None) -> Container:
    settings = ImportConfig.from_dict(import_config)
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    history_repo = MySQLUploadHistoryRepository(conn)

    history_service = UploadHistoryService(history_repo)
    engine = BatchPersistenceEngine(
        attendance_repo,
        batch_size=settings.batch_size,
        max_wait_seconds=settings.tx_max_wait_seconds,
        timeout_seconds=settings.tx_timeout_seconds,
        retry=RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
        ),
    )
    import_service = AttendanceImportService(
        attendance_repo,
        EmployeeResolver(employees_repo, email_domain=settings.default_email_domain),
        history_service,
        engine,
        progress_every=settings.batch_size,
        response_error_limit=settings.response_error_limit,
    )

    return Container(
        conn=conn,
        import_config=settings,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        history_repo=history_repo,
        history_service=history_service,
        import_service=import_service,
    )
