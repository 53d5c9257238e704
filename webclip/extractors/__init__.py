"""Extraction sub-package: site-specific and heuristic content extraction."""
