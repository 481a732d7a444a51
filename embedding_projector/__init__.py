"""Embedding projection engine: UMAP, t-SNE and PCA down to two dimensions."""

__version__ = "0.1.0"
