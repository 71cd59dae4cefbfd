"""HTTP control surface."""

from .app import build_poller, create_app

__all__ = ["build_poller", "create_app"]
