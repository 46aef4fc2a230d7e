# backend/wsgi.py
from walkwallet import create_app

app = create_app()
