# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for octopod.

This module collects the foundational classes and helpers used across the
octopod codebase: configuration, error types, structured logging, location
parsing, execution of backend commands, and retry/repeat utilities.
"""
