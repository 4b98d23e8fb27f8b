#!/usr/bin/env python3
"""
Main entry point for the inlein command line.

Delegates to the Typer app in inlein.ui.cli so the console script
mapping stays stable.
"""

from inlein.ui.cli import run as inlein


if __name__ == "__main__":
    inlein()
