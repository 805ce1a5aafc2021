"""Gunicorn settings for serving research_scanner.server:app.

Usage: gunicorn -c gunicorn_conf.py research_scanner.server:app
"""

import multiprocessing
import os

port = os.environ.get("PORT", "8080")
bind = f"0.0.0.0:{port}"

# Provider calls are I/O bound; a couple of async workers per host is enough.
workers = int(os.environ.get("GUNICORN_WORKERS", min(2, multiprocessing.cpu_count())))
worker_class = "uvicorn.workers.UvicornWorker"

# A single step makes at most two provider calls bounded by REQUEST_TIMEOUT_S;
# a full streamed run is capped at 10 minutes by the server itself.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "660"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.environ.get("GUNICORN_KEEPALIVE", "5"))

loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")
accesslog = "-"
errorlog = "-"

preload_app = True
backlog = 2048
max_requests = int(os.environ.get("GUNICORN_MAX_REQUESTS", "1000"))
max_requests_jitter = int(os.environ.get("GUNICORN_MAX_REQUESTS_JITTER", "50"))


def post_worker_init(worker):
    from research_scanner.logging import configure_structlog

    configure_structlog()
