# This project was developed with assistance from AI tools.
"""Visa Desk API."""

__version__ = "0.1.0"
