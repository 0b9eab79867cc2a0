"""LexDesk engine — config, logging, errors, settings store, API client and runtime."""
