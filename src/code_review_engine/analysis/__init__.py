"""Analysis layer: heuristic, AI and third-party review plus metrics and reporting."""
