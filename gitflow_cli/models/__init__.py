"""Data models for gitflow-cli."""
