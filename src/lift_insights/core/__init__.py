"""Pure analysis core: history extraction, patterns, metrics, predictions."""
