"""spmhost: artifact host for Swift Package Manager binary targets."""

__version__ = "0.1.0"
