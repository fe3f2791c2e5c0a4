from timeout.services.audit.audit_logger import AuditLogger

__all__ = ["AuditLogger"]
