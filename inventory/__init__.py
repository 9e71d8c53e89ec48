"""Inventory and sales management backend."""
