"""
WiFi Sentry Entry Point
=======================

Allows running the CLI via: python -m sentry
"""

from sentry.cli import main

if __name__ == "__main__":
    main()
