"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import YieldSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed into the assistant to avoid global state and enable testing.
    """

    settings: YieldSettings
    logger: logging.Logger
