"""Application services orchestrating search, embeddings and duplicate detection."""
