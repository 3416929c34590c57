"""
Services package for the pharma API
Contains the audit trail and the reporting queries
"""

from .audit import AuditTrail, list_activity

__all__ = [
    'AuditTrail',
    'list_activity',
]
