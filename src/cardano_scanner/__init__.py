"""Cardano scanner — blockchain monitoring with webhook delivery."""

__version__ = "0.1.0"
