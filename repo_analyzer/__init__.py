"""Repository analysis: source digests, model summaries, and keyed analysis operations."""
