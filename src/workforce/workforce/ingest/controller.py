from __future__ import annotations

import logging
import os

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_UPLOAD_EXTENSIONS
from ..core.exceptions import DomainError, StructuralError
from ..container import Container

logger = logging.getLogger(__name__)


def upload_filename(raw: str) -> str:
    """Sanitize a client filename without losing its extension.

    ``secure_filename`` drops non-ASCII characters, so a name like
    ``出勤.csv`` would otherwise collapse to ``csv``.
    """
    stem, ext = os.path.splitext(raw or "")
    if ext.lower() not in ALLOWED_UPLOAD_EXTENSIONS:
        return secure_filename(raw or "")
    return f"{secure_filename(stem) or 'upload'}{ext.lower()}"


def register(app: Flask, container: Container) -> None:
    service = container.import_service

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(e: RequestEntityTooLarge):
        limit = app.config.get("MAX_CONTENT_LENGTH")
        return jsonify({"success": False, "error": "File too large", "details": {"maxBytes": limit}}), 413

    @app.route("/api/attendance/upload", methods=["POST"], endpoint="api_attendance_upload")
    def api_attendance_upload():
        upload = request.files.get("file")
        filename = upload_filename(upload.filename or "") if upload else ""
        upload_date = request.form.get("uploadDate")

        try:
            result = service.import_file(
                filename=filename,
                content=upload.read() if upload else None,
                upload_date=upload_date,
            )
        except StructuralError as e:
            logger.info("Rejected upload %s: %s", filename or "-", e)
            return jsonify({"success": False, "error": str(e), "details": e.details}), 400
        except DomainError as e:
            return jsonify({"success": False, "error": str(e), "details": str(e)}), 400
        except Exception as e:
            logger.exception("Attendance upload failed")
            return jsonify({"success": False, "error": "Failed to process attendance file", "details": str(e)}), 500

        return jsonify(
            {
                "success": True,
                "data": result.to_dict(error_limit=service.response_error_limit),
                "message": result.message,
            }
        ), 200
