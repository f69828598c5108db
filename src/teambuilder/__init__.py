"""Constraint-based team generation for recreational leagues."""

__version__ = "0.1.0"
