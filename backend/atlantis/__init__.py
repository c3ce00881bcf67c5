"""Atlantis diagram store."""
