"""Version parsing, ranges and the package data model."""
