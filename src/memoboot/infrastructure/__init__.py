"""Infrastructure layer: child process execution."""
