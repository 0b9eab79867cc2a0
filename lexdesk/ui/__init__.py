"""LexDesk UI helpers."""
