"""Core business logic — calculators, classifiers, thresholds, and data models.

This module is framework-agnostic. It has no dependency on MCP or any server
framework, performs no I/O, and keeps no state between calls.
"""
