"""New-mail detection: seen-set tracking and the polling loop."""

from .poller import Poller, PollerState
from .tracker import SeenSetTracker

__all__ = ["Poller", "PollerState", "SeenSetTracker"]
