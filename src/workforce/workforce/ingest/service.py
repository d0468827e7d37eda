from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import parse_iso_date
from ..core.constants import ALLOWED_UPLOAD_EXTENSIONS, DEFAULT_BATCH_SIZE, DEFAULT_RESPONSE_ERROR_LIMIT
from ..core.enums import AttendanceStatus, ImportFileType, UpsertOutcome
from ..core.exceptions import PersistenceError, RowValidationError, StructuralError
from ..employees.resolver import EmployeeResolver
from ..history.service import UploadHistoryService, UploadTracker
from .csv_parser import CsvParser, missing_required_headers
from .model import ImportResult, ImportTally, NormalizedAttendanceRecord, ParseResult, RawRow
from .normalizer import RowNormalizer
from .persistence import BatchPersistenceEngine
from .srp_parser import SrpParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedUpload:
    """An upload that passed every structural check and is ready to process."""

    filename: str
    file_type: ImportFileType
    parsed: ParseResult


def decode_upload(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Device exports are often written in a Windows code page.
        return content.decode("latin-1")


def file_type_for(filename: str) -> ImportFileType:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_UPLOAD_EXTENSIONS:
        raise StructuralError(
            "Invalid file type. Only CSV and SRP files are allowed",
            details={"filename": filename, "allowedExtensions": list(ALLOWED_UPLOAD_EXTENSIONS)},
        )
    return ImportFileType.ATTENDANCE_SRP if ext == ".srp" else ImportFileType.ATTENDANCE_CSV


class AttendanceImportService:
    """Runs one uploaded timesheet file through parse, normalize, resolve and persist.

    Structural problems raise ``StructuralError`` before any history is
    written. From the moment the history record exists every outcome,
    including an unexpected crash, ends in a terminal status.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        resolver: EmployeeResolver,
        history: UploadHistoryService,
        engine: BatchPersistenceEngine,
        *,
        srp_parser: Optional[SrpParser] = None,
        csv_parser: Optional[CsvParser] = None,
        normalizer: Optional[RowNormalizer] = None,
        progress_every: int = DEFAULT_BATCH_SIZE,
        response_error_limit: int = DEFAULT_RESPONSE_ERROR_LIMIT,
    ):
        self._attendance = attendance
        self._resolver = resolver
        self._history = history
        self._engine = engine
        self._srp = srp_parser or SrpParser()
        self._csv = csv_parser or CsvParser()
        self._normalizer = normalizer or RowNormalizer()
        self._progress_every = max(1, int(progress_every))
        self.response_error_limit = int(response_error_limit)

    def prepare(self, *, filename: str, content: bytes | str | None, upload_date: Optional[str] = None) -> PreparedUpload:
        filename = (filename or "").strip()
        if not filename or content is None:
            raise StructuralError("No file uploaded")

        file_type = file_type_for(filename)
        text = decode_upload(content)
        if not text.strip():
            raise StructuralError("File is empty", details={"filename": filename})

        attendance_date: Optional[date] = None
        if upload_date and upload_date.strip():
            try:
                attendance_date = parse_iso_date(upload_date.strip())
            except ValueError:
                raise StructuralError(
                    "Invalid uploadDate. Expected YYYY-MM-DD",
                    details={"uploadDate": upload_date},
                ) from None

        if file_type is ImportFileType.ATTENDANCE_SRP:
            parsed = self._srp.parse(text, attendance_date=attendance_date)
            if not parsed.ok:
                raise StructuralError(parsed.errors[0], details=parsed.errors)
        else:
            parsed = self._csv.parse(text)
            if not parsed.ok:
                missing = missing_required_headers(parsed.fields)
                if parsed.fields and missing:
                    raise StructuralError(
                        parsed.errors[0],
                        details={"missingHeaders": missing, "foundHeaders": list(parsed.fields)},
                    )
                raise StructuralError(parsed.errors[0], details=parsed.errors)

        if not parsed.rows:
            raise StructuralError("No attendance records found in file", details={"filename": filename})

        return PreparedUpload(filename=filename, file_type=file_type, parsed=parsed)

    def import_file(
        self, *, filename: str, content: bytes | str | None, upload_date: Optional[str] = None
    ) -> ImportResult:
        upload = self.prepare(filename=filename, content=content, upload_date=upload_date)
        tracker = self._history.start(filename=upload.filename, file_type=upload.file_type)
        tally = ImportTally()
        total = len(upload.parsed.rows)

        try:
            tracker.progress(total=total, processed=0, errors=0)
            if upload.file_type is ImportFileType.ATTENDANCE_SRP:
                self._run_srp(upload.parsed.rows, tracker, tally)
            else:
                self._run_csv(upload.parsed.rows, tracker, tally)
        except Exception as e:
            logger.exception("Upload %s aborted", tracker.batch_id)
            if not tracker.finished:
                tracker.fail(f"Import failed: {e}", total=total, processed=tally.processed)
            raise

        errors = sorted(tally.errors, key=lambda e: e.row)
        tracker.finalize(total=total, processed=tally.processed, errors=errors, warnings=len(tally.warnings))
        return ImportResult(
            import_id=tracker.import_id,
            batch_id=tracker.batch_id,
            total_records=total,
            processed_records=tally.processed,
            errors=errors,
            warnings=list(tally.warnings),
        )

    def _run_srp(self, rows: Sequence[RawRow], tracker: UploadTracker, tally: ImportTally) -> None:
        records: List[NormalizedAttendanceRecord] = []
        accepted: List[RawRow] = []
        for row_number, raw in enumerate(rows, start=1):
            try:
                record = self._normalizer.normalize_srp(raw, row_number=row_number, batch_id=tracker.batch_id)
            except RowValidationError as e:
                tally.add_error(row_number, str(e), raw)
                continue
            records.append(record)
            accepted.append(raw)

        self._warn_duplicates(records, tally)

        directory = self._resolver.ensure_srp_employees(self._resolver.snapshot(), accepted)
        total = len(rows)

        def on_batch(index: int, count: int) -> None:
            tracker.progress(total=total, processed=tally.processed, errors=len(tally.errors))

        self._engine.persist(records, directory, tally, on_batch=on_batch)

    def _run_csv(self, rows: Sequence[RawRow], tracker: UploadTracker, tally: ImportTally) -> None:
        directory = self._resolver.snapshot()
        seen: Dict[Tuple[str, date], int] = {}
        total = len(rows)

        for row_number, raw in enumerate(rows, start=1):
            try:
                record = self._normalizer.normalize_csv(raw, row_number=row_number, batch_id=tracker.batch_id)
            except RowValidationError as e:
                tally.add_error(row_number, str(e), raw)
                continue

            employee = directory.lookup(record.employee_code)
            if employee is None:
                tally.add_error(row_number, f"Employee not found with code: {record.employee_code}", raw)
                continue

            self._warn_row(record, seen, tally)
            try:
                outcome = self._attendance.upsert(employee.employee_id, record)
            except PersistenceError as e:
                logger.warning("CSV row %d (%s) not saved: %s", row_number, record.employee_code, e)
                tally.add_error(row_number, str(e), raw)
                continue

            tally.processed += 1
            if outcome is UpsertOutcome.CREATED:
                tally.created += 1
            else:
                tally.updated += 1

            if row_number % self._progress_every == 0:
                tracker.progress(total=total, processed=tally.processed, errors=len(tally.errors))

    def _warn_row(
        self, record: NormalizedAttendanceRecord, seen: Dict[Tuple[str, date], int], tally: ImportTally
    ) -> None:
        code = record.employee_code
        if record.status is AttendanceStatus.PRESENT and not (record.check_in_time or record.check_out_time):
            tally.add_warning(record.row_number, "Status is PRESENT but no check-in/check-out times provided", code)
        if record.has_exception and not record.exception_notes:
            tally.add_warning(record.row_number, "Exception flagged without exception notes", code)
        self._check_duplicate(record, seen, tally)

    def _warn_duplicates(self, records: Sequence[NormalizedAttendanceRecord], tally: ImportTally) -> None:
        seen: Dict[Tuple[str, date], int] = {}
        for record in records:
            self._check_duplicate(record, seen, tally)

    @staticmethod
    def _check_duplicate(
        record: NormalizedAttendanceRecord, seen: Dict[Tuple[str, date], int], tally: ImportTally
    ) -> None:
        key = (record.employee_code, record.attendance_date)
        first = seen.get(key)
        if first is None:
            seen[key] = record.row_number
            return
        tally.add_warning(
            record.row_number,
            f"Duplicate record for {record.attendance_date.isoformat()} (first seen on row {first}); "
            "the later row overwrites the earlier one",
            record.employee_code,
        )
