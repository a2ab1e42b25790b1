# salon_admin/utils/__init__.py
"""
Shared helpers for logging and access control
"""
