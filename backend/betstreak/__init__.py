"""Betstreak: streak tracker for wagers placed on Stake."""

__version__ = "0.1.0"
__author__ = "Betstreak Team"

__all__ = ["__version__", "__author__"]
