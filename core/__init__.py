"""Logging and error types shared by every dashboard package."""
