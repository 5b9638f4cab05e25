import time
import uuid
import json
import logging
from datetime import datetime, timezone
from flask import Flask, request, g
from flask_cors import CORS
from flasgger import Swagger
from prometheus_client import Counter, Histogram
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

from al_selector.api import config, state
from al_selector.api.routes import sessions_bp, monitoring_bp
from al_selector.api.extensions import limiter

# Logging
logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger("api")

# Metrics
try:
    state.REQUEST_COUNT = Counter('al_selector_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
    state.REQUEST_LATENCY = Histogram('al_selector_request_latency_seconds', 'Request latency in seconds', ['endpoint'])
    state.ROUNDS_TOTAL = Counter('al_selector_rounds_total', 'Selection rounds served')
    state.PATCHES_SELECTED = Counter('al_selector_patches_selected_total', 'Patches handed out for labeling')
except ValueError:
    # Metrics might be already defined if reloaded
    pass

# Sentry
if config.SENTRY_DSN:
    try:
        sentry_sdk.init(
            dsn=config.SENTRY_DSN,
            integrations=[FlaskIntegration()],
            traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
            environment=config.APP_ENV,
            release=config.APP_VERSION,
        )
        logger.info("Sentry initialized")
    except Exception as _e:
        logger.error(f"Sentry init failed: {_e}")

app = Flask(__name__)
CORS(app)
Swagger(app)
app.config['MAX_CONTENT_LENGTH'] = config.MAX_CONTENT_LENGTH

limiter.init_app(app)

app.register_blueprint(sessions_bp)
app.register_blueprint(monitoring_bp)


def _request_record(response, elapsed: float) -> dict:
    view_args = request.view_args or {}
    return {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "request_id": g.get("request_id"),
        "session_id": view_args.get("session_id"),
        "route": g.get("route", request.path),
        "status": response.status_code,
        "elapsed_ms": round(elapsed * 1000, 1),
    }


@app.before_request
def _start_timer():
    g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    g.route = request.url_rule.rule if request.url_rule else request.path
    g.started_at = time.perf_counter()


@app.after_request
def _record_request(response):
    elapsed = time.perf_counter() - g.get('started_at', time.perf_counter())
    logger.info(json.dumps(_request_record(response, elapsed), ensure_ascii=False))
    route = g.get("route", request.path)
    if state.REQUEST_COUNT:
        state.REQUEST_COUNT.labels(request.method, route, response.status_code).inc()
    if state.REQUEST_LATENCY:
        state.REQUEST_LATENCY.labels(route).observe(elapsed)
    if g.get("request_id"):
        response.headers["X-Request-ID"] = g.request_id
    return response


if __name__ == "__main__":
    app.run(debug=True, port=5002, host="0.0.0.0")
