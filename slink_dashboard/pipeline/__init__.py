"""The dashboard admission pipeline."""
