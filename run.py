"""Development server entry point.

    python run.py

The pool is drained and closed on exit (Ctrl+C or SIGTERM).
"""
import atexit
import logging
import signal
import sys

from wishlist_api import create_app
from wishlist_api.config import Config
from wishlist_api.helpers.db import EXTENSION_KEY

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = create_app()


def _shutdown():
    db = app.extensions.get(EXTENSION_KEY)
    if db is not None:
        db.close()


def _on_sigterm(signum, frame):
    # SystemExit unwinds the server loop, then atexit closes the pool
    sys.exit(0)


atexit.register(_shutdown)
signal.signal(signal.SIGTERM, _on_sigterm)


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=app.config['PORT'], threaded=True)
