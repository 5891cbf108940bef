"""
Backend package for the survey submissions API.

This package provides a FastAPI application that appends survey
submissions to a row-oriented table and serves them back as JSON, with
row-store abstractions so the same code runs against Postgres or an
in-memory table.
"""
