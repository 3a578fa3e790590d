from __future__ import annotations

import os

from whitenoise import WhiteNoise

from .app_factory import create_app

# Expose a module-level WSGI application for Gunicorn (restoflow.wsgi:app)
app = create_app()

# Wrap with WhiteNoise to serve static assets in production
static_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "static"))
app.wsgi_app = WhiteNoise(app.wsgi_app, root=static_root, prefix="static/")  # type: ignore[method-assign]
