"""ASGI entrypoint, e.g. `uvicorn chessduel.main:app`"""

from chessduel.api.app import create_app

app = create_app()
