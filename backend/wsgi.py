# Rooms live in process memory: serve with exactly one worker, e.g.
#   gunicorn -k eventlet -w 1 wsgi:app
try:
    from backend.sketchguess.server import create_app
except ImportError:  # pragma: no cover
    from sketchguess.server import create_app

app, socketio = create_app()
