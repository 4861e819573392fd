"""Helpers for parsing model output."""
