"""Sprint planning and backlog ordering."""
