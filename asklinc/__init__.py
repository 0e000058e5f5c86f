"""AskLinc - privacy-preserving financial assistant."""
