"""ASGI entrypoint for the immich-albums API."""

from immich_albums.api.app import create_app
from immich_albums.containers import build_container

app = create_app(build_container())
