"""HTTP API for ViralBites."""
