"""Shared utilities — text helpers and logging configuration.

Rules
-----
* No business logic.
* Importable by any layer.
"""
