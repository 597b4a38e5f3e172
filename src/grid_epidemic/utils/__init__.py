"""Logging and validation helpers."""

from .logging import log_call, summarize

__all__ = ["log_call", "summarize"]
