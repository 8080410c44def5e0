# backend/wsgi.py
# FLASK_APP entrypoint: `python -m flask --app wsgi run` from the backend directory.
from lotdesk import create_app

app = create_app()
