"""
torrent-grab: hands releases found by an indexer to a torrent download client.
"""

__version__ = "0.3.0"
