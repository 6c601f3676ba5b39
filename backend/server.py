import os
import sys
import threading
import time
import uuid
from collections import OrderedDict, defaultdict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from assistant import Assistant, get_openai_client
from catalog_client import CatalogClient, CatalogError
from course_keys import normalize_keys, quarter_options
from progress import progress_report
from requirements import RequirementsFormatError, parse_major_requirements
from settings import Settings
from transcript import Transcript, assistant_reply, user_message

VERSION = "0.3.0"

# -- Rate limiting (manual token bucket, per IP) ----------------------------
_RATE_LIMIT_WINDOW = 60  # seconds
_MAX_SESSIONS = 256
_MAX_MESSAGE_CHARS = 4000


class _RateLimiter:
    def __init__(self, max_requests: int, window: float = _RATE_LIMIT_WINDOW):
        self.max_requests = max(1, int(max_requests))
        self.window = window
        self._lock = threading.Lock()
        self._tracker: dict[str, list[float]] = defaultdict(list)

    def allow(self, ip: str) -> bool:
        """Return True if request is allowed, False if rate-limited."""
        now = time.time()
        with self._lock:
            timestamps = [t for t in self._tracker[ip] if now - t < self.window]
            if len(timestamps) >= self.max_requests:
                self._tracker[ip] = timestamps
                return False
            timestamps.append(now)
            self._tracker[ip] = timestamps
            return True

    def reset(self, ip: str) -> None:
        with self._lock:
            self._tracker.pop(ip, None)


class _SessionStore:
    """Thread-safe bounded map of session id -> Transcript; least recently used is evicted."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, Transcript] = OrderedDict()

    def get(self, session_id: str) -> Transcript | None:
        with self._lock:
            if session_id not in self._items:
                return None
            self._items.move_to_end(session_id)
            return self._items[session_id]

    def get_or_create(self, session_id: str) -> Transcript:
        with self._lock:
            transcript = self._items.get(session_id)
            if transcript is None:
                transcript = Transcript()
                self._items[session_id] = transcript
            self._items.move_to_end(session_id)
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)
            return transcript


def _error(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


def _planner() -> dict:
    return current_app.extensions["planner"]


def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr or "").split(",")[0].strip()


def _parse_quarters(raw) -> list[int] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("quarters must be a list of integers.")
    quarters = []
    for q in raw:
        if isinstance(q, bool):
            raise ValueError("quarters must be a list of integers.")
        try:
            quarters.append(int(q))
        except (TypeError, ValueError):
            raise ValueError("quarters must be a list of integers.")
    return quarters


def _build_assistant(settings: Settings, openai_client, catalog: CatalogClient) -> Assistant | None:
    if openai_client is None:
        try:
            openai_client = get_openai_client(settings)
        except RuntimeError as exc:
            print(f"[WARN] Assistant disabled: {exc}", file=sys.stderr)
            return None
    return Assistant.from_settings(settings, openai_client, catalog)


def create_app(settings: Settings | None = None, openai_client=None, catalog: CatalogClient | None = None) -> Flask:
    settings = settings or Settings.from_env()
    if catalog is None:
        catalog = CatalogClient(settings.catalog_api_url, timeout=settings.catalog_timeout_seconds)

    app = Flask(__name__)
    app.extensions["planner"] = {
        "settings": settings,
        "catalog": catalog,
        "assistant": _build_assistant(settings, openai_client, catalog),
        "sessions": _SessionStore(_MAX_SESSIONS),
        "rate_limiter": _RateLimiter(settings.chat_rate_limit_max),
    }
    print(f"[OK] Catalog API at {settings.catalog_api_url}")

    # -- Security headers ----------------------------------------------------
    @app.before_request
    def _start_request_timer():
        g._request_start_time = time.perf_counter()

    @app.after_request
    def _add_security_headers(response):
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "same-origin"

        started = getattr(g, "_request_start_time", None)
        if started is not None:
            duration_ms = (time.perf_counter() - started) * 1000.0
            if duration_ms >= settings.slow_request_log_ms:
                endpoint = request.endpoint or "unknown"
                print(
                    f"[SLOW] {request.method} {request.path} "
                    f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
                )
        return response

    # ── 500 handler ─────────────────────────────────────────────────────────
    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        print(f"[ERROR] Unhandled {type(e).__name__} on {request.path}: {e}", file=sys.stderr)
        return _error("SERVER_ERROR", "An unexpected server error occurred.", 500)

    # ── Routes ──────────────────────────────────────────────────────────────
    @app.route("/health", methods=["GET"])
    def health_endpoint():
        return jsonify({
            "status": "ok",
            "version": VERSION,
            "assistant_ready": _planner()["assistant"] is not None,
        })

    @app.route("/api/quarters", methods=["GET"])
    def get_quarters():
        try:
            quarters = _planner()["catalog"].get_quarters()
        except CatalogError as exc:
            print(f"[WARN] Quarter lookup failed: {exc}", file=sys.stderr)
            return _error("UPSTREAM_ERROR", "Could not load quarters from the course catalog.", 502)
        return jsonify({"quarters": quarter_options(quarters)})

    @app.route("/api/majors", methods=["GET"])
    def get_majors():
        try:
            majors = _planner()["catalog"].get_majors()
        except CatalogError as exc:
            print(f"[WARN] Major lookup failed: {exc}", file=sys.stderr)
            return _error("UPSTREAM_ERROR", "Could not load majors from the course catalog.", 502)
        return jsonify({"majors": majors})

    @app.route("/api/progress", methods=["POST"])
    def progress_endpoint():
        """Completion stats for a major's requirement tree against the student's courses."""
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)

        completed = normalize_keys(body.get("completed_courses"))
        inline_tree = body.get("requirements")
        major = str(body.get("major") or "").strip()

        if inline_tree is not None:
            try:
                major_reqs = parse_major_requirements(inline_tree)
            except RequirementsFormatError as exc:
                return _error("INVALID_INPUT", str(exc), 400)
            return jsonify(progress_report(major_reqs, completed))

        if not major:
            return _error("INVALID_INPUT", "Provide 'major' or an inline 'requirements' tree.", 400)

        try:
            payload = _planner()["catalog"].get_major_requirements(major)
            major_reqs = parse_major_requirements(payload)
        except CatalogError as exc:
            print(f"[WARN] Requirements lookup failed for '{major}': {exc}", file=sys.stderr)
            return _error("UPSTREAM_ERROR", f"Could not load requirements for '{major}'.", 502)
        except RequirementsFormatError as exc:
            print(f"[WARN] Malformed requirements for '{major}': {exc}", file=sys.stderr)
            return _error("UPSTREAM_ERROR", f"Requirements for '{major}' are malformed.", 502)
        return jsonify(progress_report(major_reqs, completed))

    @app.route("/api/chat", methods=["POST"])
    def chat_endpoint():
        planner = _planner()
        if not app.config.get("TESTING") and not planner["rate_limiter"].allow(_client_ip()):
            return _error("RATE_LIMITED", "Too many requests. Please wait before submitting again.", 429)

        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)

        message = str(body.get("message") or "").strip()
        if not message:
            return _error("INVALID_INPUT", "'message' is required.", 400)
        if len(message) > _MAX_MESSAGE_CHARS:
            return _error("INVALID_INPUT", f"'message' must be at most {_MAX_MESSAGE_CHARS} characters.", 400)

        try:
            quarters = _parse_quarters(body.get("quarters"))
        except ValueError as exc:
            return _error("INVALID_INPUT", str(exc), 400)

        assistant = planner["assistant"]
        if assistant is None:
            return _error("ASSISTANT_UNAVAILABLE", "The assistant is not configured.", 503)

        if quarters is None:
            try:
                quarters = planner["catalog"].get_quarters()
            except CatalogError as exc:
                print(f"[WARN] Quarter lookup failed; continuing without quarters: {exc}", file=sys.stderr)
                quarters = []

        session_id = str(body.get("session_id") or "").strip() or uuid.uuid4().hex
        transcript = planner["sessions"].get_or_create(session_id)
        transcript.append(user_message(message))

        reply = assistant.converse(
            set(normalize_keys(body.get("taken_courses"))),
            str(body.get("major") or "").strip(),
            quarters,
            message,
        )
        reply_msg = assistant_reply(reply)
        transcript.append(reply_msg)
        return jsonify({"session_id": session_id, "reply": reply_msg.to_dict()})

    @app.route("/api/chat/<session_id>", methods=["GET"])
    def chat_history_endpoint(session_id):
        transcript = _planner()["sessions"].get(session_id)
        if transcript is None:
            return _error("NOT_FOUND", f"Unknown session '{session_id}'.", 404)
        return jsonify({
            "session_id": session_id,
            "messages": [m.to_dict() for m in transcript.messages()],
        })

    app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])

    # -- API catch-all (404 for unknown /api/* routes) -------------------
    @app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
    def api_catch_all(rest):
        return jsonify({"error": f"/api/{rest} not found"}), 404

    return app


if __name__ == "__main__":
    _settings = Settings.from_env()
    app = create_app(_settings)
    app.run(host="0.0.0.0", port=_settings.port, debug=_settings.debug)
