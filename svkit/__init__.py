"""Structural variant toolkit: merging calls in an interval tree, placing simulated SVs, read error profiles, read simulation and call evaluation."""

__version__ = "1.0.7"