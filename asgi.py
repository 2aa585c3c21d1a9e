"""
asgi.py -- ASGI entry point for DataMap.

Settings are read from the environment / .env when this module is imported;
the database is opened by the app's lifespan at startup.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import create_app

app = create_app()
