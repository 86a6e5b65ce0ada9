"""Location resolution and multi-provider food POI aggregation."""

__version__ = "1.0.0"
