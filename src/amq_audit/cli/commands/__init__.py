"""CLI subcommands for amq-audit."""
