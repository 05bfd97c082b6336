"""Product search: query enhancement, candidate retrieval and ranking."""
