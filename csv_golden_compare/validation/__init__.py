"""Validation utilities.

This package contains *non-interactive* tooling for comparing produced files
against golden references.

Design goals
------------
1) Keep each file-pair comparison self-contained (no shared state between calls).
2) Make comparisons reproducible and scriptable (CLI-style entry points).
3) Prefer robust parsing of irregular exports.
"""
