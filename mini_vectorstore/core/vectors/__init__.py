"""Vector math, keyword scoring, and document codecs."""
