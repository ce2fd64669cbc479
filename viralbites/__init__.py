"""ViralBites: find food places trending on short-form video near you."""

__version__ = "0.1.0"
