"""Loom: materialize LLM build output into a sandbox-ready project tree."""

__version__ = "0.1.0"
