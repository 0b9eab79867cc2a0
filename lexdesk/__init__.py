"""LexDesk — legal practice workspace: documents, folders and AI chat."""

__version__ = "0.3.0"
