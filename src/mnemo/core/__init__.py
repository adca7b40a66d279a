"""Core building blocks shared by every Mnemo component."""
