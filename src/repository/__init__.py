"""Repository registry and local repository layout."""
