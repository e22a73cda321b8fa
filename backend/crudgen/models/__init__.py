"""Storage-side types: enums and the dynamically built table."""
