"""
Gunicorn configuration for the CryptoGuard API.

Usage (from backend/):
    gunicorn -c gunicorn.conf.py cryptoguard.main:app

AI quotas and the scan cache live in process memory, so each worker keeps its
own counters. Keep GUNICORN_WORKERS at 1 unless per-worker quotas are acceptable.
"""

import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
threads = int(os.getenv("GUNICORN_THREADS", "1"))

# Worker recycling
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "1000"))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", "100"))

# AI completions can take up to AI_TIMEOUT_SECONDS
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
keepalive = 5
graceful_timeout = 30

proc_name = "cryptoguard-api"
daemon = False

# Logging
errorlog = "-"
accesslog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Each worker builds its own services in the app lifespan
preload_app = False
