"""Operational (non-audit) logging for amq-audit."""
