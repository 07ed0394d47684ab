"""Node resource topology exporting: pod resources data, filters, events, metrics and updates."""

__version__ = "0.1.0"