"""Clients for upstream language model APIs."""
