"""talkvn - dialogue playback engine for visual-novel style episodes."""

__version__ = "0.1.0"
