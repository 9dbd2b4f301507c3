import os

# Gunicorn config
bind = os.getenv("BIND", "0.0.0.0:8000")
# Change-feed subscriptions are per process; websocket clients only see writes made by their own worker
workers = int(os.getenv("WEB_CONCURRENCY", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
loglevel = os.getenv("LOG_LEVEL", "info")
accesslog = "-"
errorlog = "-"
