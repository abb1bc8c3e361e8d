"""CityWise — permit and engineering-requirement checklists for Phoenix-area residential projects."""

__version__ = "0.1.0"
