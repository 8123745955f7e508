"""Domain types: backends, descriptors, and run phases."""
