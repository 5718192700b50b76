"""Helpers for testing the runner."""
