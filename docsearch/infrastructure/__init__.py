"""Infrastructure adapters: embeddings, search components, persistence, tasks."""
