"""Cake Out invoicing: pricing, validation and customer lookup for invoice drafts."""

__version__ = "0.1.0"
