"""
Gunicorn configuration for the Mindloop production server.

    gunicorn -c gunicorn.conf.py

Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 2)
"""
import os

# The app is built by a factory, so gunicorn calls it once per worker.
wsgi_app = "mindloop.main:create_app()"

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# SQLite allows one writer at a time; keep this at 1 unless DATABASE_URL is PostgreSQL.
workers = int(os.environ.get("WORKERS", "2"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5
timeout = 120

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
