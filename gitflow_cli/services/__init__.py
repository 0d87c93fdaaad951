"""Services used by the gitflow workflows."""
