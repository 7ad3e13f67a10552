"""School records store partitioned by academic year."""

__version__ = "0.1.0"
