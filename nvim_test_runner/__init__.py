"""Dependency-resolving test runner for Neovim plugins."""
