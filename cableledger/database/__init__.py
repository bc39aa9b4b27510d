"""Engine and session management."""
