"""
Production Server Configuration

Run the Sales Analytics API with Uvicorn workers under Gunicorn. Address,
worker count and log level come from the application settings (API_HOST,
API_PORT, API_WORKERS, LOG_LEVEL).
"""

from sales_analytics.config import get_settings

settings = get_settings()

bind = f"{settings.api_host}:{settings.api_port}"
workers = settings.api_workers
worker_class = "uvicorn.workers.UvicornWorker"

# Worker recycling
max_requests = 2000
max_requests_jitter = 200

# Spreadsheet uploads are parsed inside the request
timeout = 300
graceful_timeout = 30

proc_name = "sales-analytics-api"

errorlog = "-"
accesslog = "-"
loglevel = settings.monitoring.log_level.lower()


def when_ready(server):
    server.log.info("Sales Analytics API ready on %s with %s workers", bind, workers)


def worker_abort(worker):
    worker.log.warning("Worker %s aborted after %ss", worker.pid, timeout)
