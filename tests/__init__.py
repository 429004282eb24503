"""
Test suite for sheetsync.

Unit tests for the column reconciler, type inference, sheet reader,
metadata store, sync service and CLI live under tests/unit.
"""
