"""Registry Guardian — HTTP surface."""
