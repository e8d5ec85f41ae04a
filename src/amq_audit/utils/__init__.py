"""Shared utilities for amq-audit."""
