"""Ledgerwise command-line application package."""

from app.main import build_parser, main

__all__ = ["build_parser", "main"]
