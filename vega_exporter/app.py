from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flask import Flask, Response
from markupsafe import escape
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from vega_exporter.client import VegaClient
from vega_exporter.collector import VegaCollector
from vega_exporter.config import ExporterConfig, load_config

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Vega Metrics Exporter</title></head>
<body>
<h1>Vega Metrics Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_registry(client: VegaClient) -> CollectorRegistry:
    # Dedicated registry: only the node's series, no python process/gc collectors.
    registry = CollectorRegistry()
    registry.register(VegaCollector(client))
    return registry


def create_app(registry: CollectorRegistry, metrics_path: str = "/metrics") -> Flask:
    app = Flask(__name__)

    def metrics() -> Response:
        return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)

    def index() -> Response:
        return Response(LANDING_PAGE.format(metrics_path=escape(metrics_path)), mimetype="text/html")

    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    app.add_url_rule(metrics_path, "metrics", metrics, methods=["GET"])
    app.add_url_rule("/", "index", index, methods=["GET"])
    app.add_url_rule("/healthz", "healthz", healthz, methods=["GET"])
    return app


def main(argv: Optional[List[str]] = None) -> None:
    config: ExporterConfig = load_config(argv)
    configure_logging(config.log_level)
    if config.insecure_skip_verify:
        logger.info("TLS certificate verification is disabled for %s", config.endpoint)

    client = VegaClient(config.endpoint, config.transport)
    app = create_app(build_registry(client), config.metrics_path)

    host, port = config.listen
    logger.info("Serving %s on %s:%d (node: %s)", config.metrics_path, host, port, config.endpoint)
    # Flask's threaded server; each scrape runs its own cycle on its own thread.
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
