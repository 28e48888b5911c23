#!/usr/bin/env python3
"""
Entry point for the selector CLI.

Run with: python -m selector
"""

from .cli import cli

if __name__ == '__main__':
    cli()
