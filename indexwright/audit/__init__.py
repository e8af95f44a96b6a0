"""Audit trail of index operations."""

from indexwright.audit.ledger import AuditEntry, AuditLedger

__all__ = ["AuditEntry", "AuditLedger"]
