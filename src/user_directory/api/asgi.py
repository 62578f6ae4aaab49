"""Module-level app for ASGI servers (``user_directory.api.asgi:app``)."""

from user_directory.api.app import create_app
from user_directory.config import Settings
from user_directory.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
