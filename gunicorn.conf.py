import os
import sys

# Add src directory to Python path so 'al_selector' package can be found
sys.path.append(os.path.join(os.getcwd(), 'src'))

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Sessions live in process memory: a single worker keeps every request for a
# session on the same registry. Threads are safe, each session has its own lock.
workers = 1
threads = int(os.environ.get('GUNICORN_THREADS', '4'))
worker_class = "gthread"
worker_tmp_dir = "/dev/shm"

preload_app = False
accesslog = "-"
errorlog = "-"
loglevel = "info"
wsgi_app = "al_selector.api.server:app"
