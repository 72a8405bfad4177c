"""Signalist: durable daily market-news summary and onboarding emails."""

__version__ = "0.1.0"
__author__ = "Signalist Team"

__all__ = ["__version__", "__author__"]
