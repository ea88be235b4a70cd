"""AstroLynx: conversational retrieval-augmented assistant over a document index and a knowledge graph."""

__version__ = "1.0.0"
