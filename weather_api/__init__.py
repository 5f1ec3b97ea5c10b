"""
Weather Station API

Serves BMKG-style station metadata and daily weather observations
from PostgreSQL as JSON.
"""

__version__ = "1.0.0"
