"""WSGI entrypoint for Gunicorn.

Usage:
  gunicorn -w 4 --threads 8 -b 0.0.0.0:8000 wsgi:app
"""

from banca import create_app

app = create_app()
