"""Extraction services for the sellerscope pipeline."""
