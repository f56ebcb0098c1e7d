"""Reliability helpers for network calls: retry policy and feed cache."""
