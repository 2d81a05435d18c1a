"""ASGI entrypoint for the treatment summary API."""

from ckd_tracker.api.app import create_app
from ckd_tracker.containers import build_container

app = create_app(build_container())
