"""Classification, parsing and reporting services."""
