"""Processing of inbound federated Delete activities."""

__version__ = "0.1.0"
