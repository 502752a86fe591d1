"""
Test suite for rogue-audit.

Unit tests cover reconciliation, drop orchestration, the database layer,
metadata providers, configuration and the CLI.
"""
