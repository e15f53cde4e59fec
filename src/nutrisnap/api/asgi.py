"""ASGI entrypoint for the remote analysis API."""

from nutrisnap.api.app import create_app
from nutrisnap.containers import build_container

app = create_app(build_container())
