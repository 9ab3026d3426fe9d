"""Database-agnostic column types.

Production runs on PostgreSQL (JSONB); local development and the test suite
run on SQLite, which only understands plain JSON.
"""
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")
