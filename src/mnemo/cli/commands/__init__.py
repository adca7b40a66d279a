"""Sub-commands of the ``mnemo`` CLI."""
