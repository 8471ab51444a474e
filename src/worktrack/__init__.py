"""WorkTrack - code-change activity trees for flamegraph viewers."""

__version__ = "0.1.0"
