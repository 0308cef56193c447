"""
Repository layer: all SQL lives here.

Repositories wrap a Session handed in by TrackerStore.session(); they never
open sessions or commit on their own.
"""

from repositories.open_repository import OpenRepository
from repositories.pixel_repository import PixelRepository
from repositories.stats_repository import StatsRepository

__all__ = ["OpenRepository", "PixelRepository", "StatsRepository"]
