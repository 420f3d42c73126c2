"""Warehouse access: result models, query builders and execution."""
