"""Seller and product extraction for retail marketplace listing pages."""
