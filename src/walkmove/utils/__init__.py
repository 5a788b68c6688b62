"""Utility functions and types for walkmove.

This module contains utility functions, type definitions and helper classes
used throughout the walkmove package:

- Type annotations for walker arrays and protocols for the log-density
  oracle and the random source
- A numpy-backed random source
- Autocorrelation calculation utilities
"""
