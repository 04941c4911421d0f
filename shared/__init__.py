"""
WiFi Sentry Shared Module
=========================

Configuration, logging, console and math utilities shared by every
WiFi Sentry package.
"""

from shared.config import SentryConfig, get_config

__all__ = ["SentryConfig", "get_config"]
