"""Schema-driven CRUD web application for a single table."""
