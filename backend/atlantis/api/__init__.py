"""HTTP API for Atlantis."""
