"""Precursor: config-driven project doctor and scaffolder."""

__version__ = "0.1.0"
