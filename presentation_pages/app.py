# Run locally with: pip install -e . && python -m presentation_pages.app
from __future__ import annotations

import os
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import InternalServerError

from .config import Settings
from .logging_config import get_logger, init_logging
from .service import PageService, Result

log = get_logger(__name__)

ERROR_STATUS = {
    "Protected": 403,
    "LastPageProtected": 403,
    "NotFound": 404,
    "TemplateMissing": 404,
    "NotWritable": 500,
    "NotReadable": 500,
    "WriteDenied": 500,
    "CorruptStore": 500,
    "MalformedPayload": 500,
}


def _json_error(message: str, status: int = 400, **extra: Any):
    payload: dict[str, Any] = {"status": "error", "message": message}
    payload.update(extra)
    return jsonify(payload), status


def _respond(result: Result, success_status: int = 200):
    if result.get("status") == "success":
        return jsonify(result), success_status
    return jsonify(result), ERROR_STATUS.get(result.get("code", ""), 400)


def _form_presentations(form: MultiDict) -> dict[str, list[str]] | None:
    """Collect ``presentations[url][]`` / ``presentations[duration][]`` form columns."""
    keys = {
        "url": ("presentations[url][]", "presentations[url]"),
        "duration": ("presentations[duration][]", "presentations[duration]"),
    }
    if not any(k in form for names in keys.values() for k in names):
        return None
    columns: dict[str, list[str]] = {}
    for column, names in keys.items():
        for name in names:
            if name in form:
                columns[column] = form.getlist(name)
                break
    return columns


def _action_params() -> tuple[dict[str, Any], Any]:
    payload = request.get_json(silent=True) if request.is_json else None
    if isinstance(payload, dict):
        return payload, payload.get("presentations")
    return request.form.to_dict(), _form_presentations(request.form)


def create_app(settings: Settings | None = None) -> Flask:
    init_logging()
    settings = settings or Settings.from_env()
    service = PageService.from_settings(settings)

    app = Flask(__name__)
    app.config["PAGES_SETTINGS"] = settings

    @app.errorhandler(InternalServerError)
    def _internal_error(exc: InternalServerError):
        original = getattr(exc, "original_exception", None) or exc
        log.error("Unhandled error: %s", original)
        return _json_error(f"Unexpected error: {original}", 500, code="Internal")

    @app.route("/health", methods=["GET"])
    def healthcheck():
        return jsonify(
            {
                "status": "ok",
                "root": str(settings.root),
                "registry_path": str(settings.registry_path),
                "registry_exists": settings.registry_path.exists(),
                "template_exists": (settings.root / settings.template_name).is_file(),
            }
        )

    @app.route("/api/pages", methods=["GET"])
    def api_list_pages():
        return _respond(service.list_pages())

    @app.route("/api/pages", methods=["POST"])
    def api_add_page():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _json_error("Expected a JSON object.", 400, code="Invalid")
        return _respond(service.add_page(str(payload.get("page_name") or "")), success_status=201)

    @app.route("/api/pages/<path:page_file>", methods=["DELETE"])
    def api_remove_page(page_file: str):
        return _respond(service.remove_page(page_file))

    @app.route("/api/pages/<path:page_file>/content", methods=["GET"])
    def api_load_content(page_file: str):
        return _respond(service.load_page_content(page_file))

    @app.route("/api/pages/<path:page_file>/content", methods=["PUT"])
    def api_save_content(page_file: str):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _json_error("Expected a JSON object.", 400, code="Invalid")
        return _respond(service.save_page_content(page_file, payload.get("presentations")))

    @app.route("/api/action", methods=["POST"])
    def api_action():
        params, presentations = _action_params()
        action = str(params.get("action") or "")

        if action == "add_page":
            return _respond(service.add_page(str(params.get("page_name") or "")))
        if action == "remove_page":
            return _respond(service.remove_page(str(params.get("page_file") or "")))
        if action == "load_page_content":
            return _respond(service.load_page_content(str(params.get("target_file") or "")))
        if action == "save_page_content":
            return _respond(service.save_page_content(str(params.get("target_file") or ""), presentations))
        if not action and presentations is not None:
            # Older editor form: posts presentations only, always for the main page.
            return _respond(service.save_page_content(settings.template_name, presentations))
        return _json_error("Invalid action.", 400, code="InvalidAction")

    return app


app = create_app()


if __name__ == "__main__":
    app.run(debug=str(os.environ.get("PAGES_DEBUG", "0")).strip().lower() in {"1", "true", "yes", "on"})
