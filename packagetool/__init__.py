"""Build distribution packages for a repository inside an ephemeral container."""
