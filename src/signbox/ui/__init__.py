"""User interfaces for signbox."""
