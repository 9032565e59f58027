"""
seigniorage.cli
---------------
Command-line entrypoints:

- simulate : inspect effective parameters, compute bond rates, and replay a
             price path through an in-memory protocol

Usage:
  python -m seigniorage.cli.simulate --help
"""
