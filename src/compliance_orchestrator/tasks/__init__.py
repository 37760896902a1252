"""Task descriptors and output contracts for every workflow."""
