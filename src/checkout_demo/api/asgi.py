"""ASGI app for `uvicorn checkout_demo.api.asgi:app`."""

from checkout_demo.api.app import create_app
from checkout_demo.config import Settings
from checkout_demo.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
