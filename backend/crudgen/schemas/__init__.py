"""Pydantic models: the table definition document and page metadata."""
