from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.history_service

    def _not_found(e: NotFoundError):
        return jsonify({"success": False, "error": str(e)}), 404

    def _bad_request(message: str):
        return jsonify({"success": False, "error": message}), 400

    @app.route("/api/attendance/upload-history", methods=["GET"], endpoint="api_upload_history")
    def api_upload_history():
        uploads = service.list_recent(limit=DEFAULT_HISTORY_LIMIT)
        return jsonify({"success": True, "data": [u.to_dict() for u in uploads]}), 200

    @app.route("/api/attendance/upload-history/<batch_id>", methods=["GET"], endpoint="api_upload_history_detail")
    def api_upload_history_detail(batch_id: str):
        try:
            upload = service.get(batch_id)
        except NotFoundError as e:
            return _not_found(e)
        return jsonify({"success": True, "data": upload.to_dict()}), 200

    @app.route("/api/attendance/upload-history", methods=["DELETE"], endpoint="api_upload_history_delete")
    def api_upload_history_delete():
        raw_id = (request.args.get("id") or "").strip()
        if not raw_id.isdigit():
            return _bad_request("Upload history id is required")
        try:
            service.delete_history(int(raw_id))
        except NotFoundError as e:
            return _not_found(e)
        return jsonify({"success": True, "message": "Upload history deleted"}), 200

    @app.route("/api/attendance/delete-batch", methods=["DELETE"], endpoint="api_attendance_delete_batch")
    def api_attendance_delete_batch():
        batch_id = request.args.get("batchId") or ""
        try:
            deleted = service.delete_batch(batch_id)
        except ValidationError as e:
            return _bad_request(str(e))
        except NotFoundError as e:
            return _not_found(e)
        return jsonify(
            {
                "success": True,
                "data": {"batchId": batch_id.strip(), "deletedRecords": deleted},
                "message": f"Deleted {deleted} attendance records from batch",
            }
        ), 200
