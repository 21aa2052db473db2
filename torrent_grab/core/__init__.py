"""
Core application engine for grabbing releases.

The `AcquisitionResolver` decides how one release reaches the download client;
the `GrabManager` runs many resolutions concurrently and keeps the session
statistics.
"""

from .grab_manager import GrabManager, load_releases
from .resolver import AcquisitionResolver, select_locators

__all__ = ["AcquisitionResolver", "GrabManager", "load_releases", "select_locators"]
