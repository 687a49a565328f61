"""
Gunicorn settings for running the strm-triage console API.

Usage:
    gunicorn strm_triage.main:app -c gunicorn.conf.py

Each worker owns its own SQLAlchemy pool (pool_size + max_overflow), so the
worker count bounds the connections the store has to accept.
"""

import multiprocessing

bind = "0.0.0.0:8000"

workers = multiprocessing.cpu_count() * 2 + 1

# FastAPI is ASGI; gunicorn only supervises the uvicorn workers
worker_class = "uvicorn.workers.UvicornWorker"

# List, statistics and batch calls are each a couple of store round-trips
timeout = 30

keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = "info"
