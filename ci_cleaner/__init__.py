"""Removes leftover CI resources from AWS and Azure accounts."""

__version__ = "0.3.0"
