"""Doctree - hierarchical path store for documentation sites."""
