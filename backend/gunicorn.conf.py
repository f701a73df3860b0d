# gunicorn.conf.py
# Gunicorn configuration file
# Run with: gunicorn -c gunicorn.conf.py wsgi:app

import logging
import os

# Logging
accesslog = '-'  # Log to stdout
errorlog = '-'   # Log to stderr
loglevel = 'info'

# Worker configuration
bind = f"0.0.0.0:{os.environ.get('PORT', '5001')}"
workers = 1
worker_class = 'sync'
# Uploads go to object storage with a 60s timeout
timeout = 120

# Server mechanics
daemon = False
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None

# Hooks
def post_worker_init(worker):
    """
    Called after a worker has been forked and initialized.
    Starts the database keepalive thread in the worker process.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"=== Post-worker init hook called for worker PID {os.getpid()} ===")

    import db_utils
    db_utils.start_keepalive_thread()


def worker_exit(server, worker):
    """
    Called when a worker exits.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Worker {worker.pid} exiting - closing database pool")

    import db_utils
    db_utils.stop_keepalive_thread()
    db_utils.close_connection_pool()
