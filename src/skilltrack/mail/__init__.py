"""Outbound mail delivery."""
