"""HTTP surface of the engagement engine."""
