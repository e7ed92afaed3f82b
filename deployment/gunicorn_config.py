"""
Gunicorn Configuration for FamilyConnect
Production WSGI server settings

    gunicorn -c deployment/gunicorn_config.py wsgi:app
"""
import multiprocessing
import os

APP_HOME = os.environ.get('FAMILYCONNECT_HOME', '/home/familyconnect/app')

# Server Socket
bind = os.environ.get('GUNICORN_BIND', '127.0.0.1:8000')
backlog = 2048

# Worker Processes
workers = int(os.environ.get('GUNICORN_WORKERS', multiprocessing.cpu_count() * 2 + 1))
worker_class = 'gthread'
threads = int(os.environ.get('GUNICORN_THREADS', 4))
max_requests = 1000
max_requests_jitter = 50
timeout = 120  # newsletter sends wait on SMTP
keepalive = 5

# Logging
accesslog = os.path.join(APP_HOME, 'logs', 'gunicorn_access.log')
errorlog = os.path.join(APP_HOME, 'logs', 'gunicorn_error.log')
loglevel = 'info'
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process Naming
proc_name = 'familyconnect'

# Server Mechanics
daemon = False
pidfile = os.path.join(APP_HOME, 'gunicorn.pid')
umask = 0o007

# Uploads are capped by MAX_CONTENT_LENGTH in config.py; nginx must allow
# the same body size (client_max_body_size 50m).
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def worker_abort(worker):
    """Called when a worker times out, usually a stuck SMTP or S3 call"""
    worker.log.warning("worker aborted (pid: %s)", worker.pid)
