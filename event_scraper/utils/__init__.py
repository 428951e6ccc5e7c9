"""Shared date, text and venue helpers."""
