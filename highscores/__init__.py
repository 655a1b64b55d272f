"""
Puzzle high score service.

Records the best (fewest moves) score per difficulty level and puzzle image,
and serves the whole table over a small JSON API.
"""

__version__ = "1.0.0"
