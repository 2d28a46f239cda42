"""Odoo attendance check-in/check-out over Odoo's web login and systray endpoint."""

__version__ = "1.0.0"
