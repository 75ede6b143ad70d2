import atexit
import json
import logging
import os
import time

from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from action_log.config import Config
from action_log.errors import ActionLogError, ValidationError
from action_log.index import LogIndex
from action_log.log_store import LogStore, MergeMode
from action_log.models import EntrySequence, normalize_content
from action_log.retention import RetentionSweeper
from action_log.validator import LogValidator

logger = logging.getLogger(__name__)


def create_app(config=None, time_func=None, start_scheduler=None):
    """Flask application factory.

    Sweeps the storage root and builds the index before returning, so the
    app never serves traffic from an unswept store.
    """
    app = Flask(__name__)

    if config is None:
        config = Config(os.environ.get("CONFIG_PATH", "config.yaml"))

    retention = config["retention"]
    store = LogStore(config["storage"]["log_dir"])
    validator = LogValidator(config["schema"]["path"])
    sweeper = RetentionSweeper(store, max_age_days=retention["max_age_days"], time_func=time_func)
    index = LogIndex(store)

    def sweep_and_rebuild(trigger):
        result = sweeper.sweep(trigger)
        index.rebuild()
        return result

    def after_write():
        if retention["sweep_on_write"]:
            sweeper.sweep("post-write")
        index.rebuild()

    sweep_and_rebuild("startup")
    logger.info("Logs are stored in: %s (%d entries indexed)", store.root, index.size)

    if start_scheduler is None:
        start_scheduler = retention["scheduler_enabled"]

    scheduler = None
    if start_scheduler:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            sweep_and_rebuild,
            "interval",
            hours=retention["sweep_interval_hours"],
            args=["scheduled"],
        )
        scheduler.start()

        # Make sure scheduler shuts down with the app
        def stop_scheduler():
            if scheduler.running:
                scheduler.shutdown(wait=False)

        atexit.register(stop_scheduler)

    # Store components on app for access in tests
    app.config["components"] = {
        "config": config,
        "store": store,
        "validator": validator,
        "sweeper": sweeper,
        "index": index,
        "scheduler": scheduler,
    }

    # --- CORS ---

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return "", 200
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    # --- Error handling ---

    @app.errorhandler(ActionLogError)
    def handle_action_log_error(exc):
        if exc.status_code >= 500:
            logger.error("[API] %s %s failed: %s", request.method, request.path, exc)
        else:
            logger.warning(
                "[API] %s %s -> %d %s", request.method, request.path, exc.status_code, exc.message
            )
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            message = "Not found" if exc.code == 404 else exc.name
            return jsonify({"error": message}), exc.code
        logger.exception("[API] Unexpected error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error", "details": str(exc)}), 500

    # --- Routes ---

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "files": len(store.list()),
            "indexed": index.size,
        })

    @app.route("/api/logs", methods=["GET"])
    def all_logs():
        return jsonify(index.get_all())

    @app.route("/api/logs/list", methods=["GET"])
    def list_logs():
        files = store.list()
        return jsonify({"success": True, "count": len(files), "files": files})

    @app.route("/api/logs/<path:file_name>", methods=["GET"])
    def get_log_file(file_name):
        return jsonify(store.read(file_name).to_raw())

    @app.route("/api/logs/save", methods=["POST"])
    def save_log():
        body = _json_body()
        log_data = body.get("logData")
        file_name = body.get("fileName")

        if not log_data:
            raise ValidationError("logData is required")
        if not file_name:
            raise ValidationError("fileName is required")

        try:
            mode = MergeMode(body.get("mode", MergeMode.OVERWRITE.value))
        except ValueError:
            raise ValidationError("mode must be 'overwrite' or 'append'") from None

        if isinstance(log_data, str):
            try:
                log_data = json.loads(log_data)
            except json.JSONDecodeError as exc:
                raise ValidationError("logData is not valid JSON", details=str(exc)) from exc

        try:
            content = normalize_content(log_data)
        except ActionLogError as exc:
            raise ValidationError(exc.message, details=exc.details) from exc
        validator.validate_content(content)

        path = store.append(file_name, content, mode)
        after_write()

        return jsonify({
            "success": True,
            "message": "Log saved successfully",
            "filePath": path,
            "fileName": os.path.basename(path),
        })

    @app.route("/api/logs/<path:file_name>", methods=["DELETE"])
    def delete_log_file(file_name):
        store.delete(file_name)
        index.rebuild()
        return jsonify({"success": True, "message": "Log file deleted successfully"})

    @app.route("/api/logs/cleanup", methods=["POST"])
    def cleanup():
        logger.info("[API] Manual cleanup triggered")
        result = sweep_and_rebuild("manual")
        return jsonify(result.to_dict())

    @app.route("/api/logs/upload", methods=["POST"])
    def upload_logs():
        logs_data = _json_body().get("logsData")
        if not logs_data:
            raise ValidationError("logsData is required")
        if not isinstance(logs_data, (list, dict)):
            raise ValidationError("logsData must be a JSON object or array")

        content = EntrySequence(tuple(logs_data if isinstance(logs_data, list) else [logs_data]))
        validator.validate_content(content)

        path = store.append(f"uploaded_{int(time.time() * 1000)}", content)
        after_write()

        count = len(content.entries)
        return jsonify({
            "success": True,
            "message": f"Successfully uploaded {count} logs",
            "count": count,
            "fileName": os.path.basename(path),
        })

    @app.route("/api/validation-stats")
    def validation_stats():
        return jsonify(validator.get_stats())

    return app


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        if request.data:
            raise ValidationError("Request body is not valid JSON")
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body
