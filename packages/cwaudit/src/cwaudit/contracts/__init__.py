from __future__ import annotations

CHECK_CONFIG = "cwaudit.check-config"
AUDIT_SUMMARY = "cwaudit.audit-summary"

__all__ = ["AUDIT_SUMMARY", "CHECK_CONFIG"]
