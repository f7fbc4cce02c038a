"""Personal finance dashboard core: backend client, aggregation and chart resolution."""

__version__ = "0.1.0"
