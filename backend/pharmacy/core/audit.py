"""
Audit logging for inventory-affecting and workflow events.

Every stock change, sale, status change and degraded-mode fallback is
written as one JSON line on the "audit" logger so it can be shipped to
centralized logging separately from application logs.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

# Separate logger for audit events
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for pharmacy events."""

    @staticmethod
    def log_stock_change(
        medicine_id: str,
        movement: str,  # "in" | "out"
        quantity: int,
        old_stock: int,
        new_stock: int,
        reason: str,
        source: str = "remote",
    ):
        """
        Log a stock movement.

        Usage:
            AuditLog.log_stock_change("med_001", "out", 2, 150, 148, "Sale WF-20250108-0042")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"stock.{movement}",
            "medicine_id": medicine_id,
            "quantity": quantity,
            "old_stock": old_stock,
            "new_stock": new_stock,
            "reason": reason,
            "source": source,
        }
        audit_logger.info(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "status", "verify"
        resource_type: str,  # "medicine", "sale", "prescription", "employee", "ticket"
        resource_id: str,
        changes: Optional[Dict[str, Any]] = None,
        source: str = "remote",
    ):
        """
        Log a write against one of the pharmacy entities.

        Usage:
            AuditLog.log_action("status", "prescription", rx.id, changes={"status": "dispensed"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
            "source": source,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_fallback(operation: str, reason: str):
        """
        Log a call that was served by the local store because the remote
        store was unavailable. Data written this way is never reconciled.

        Usage:
            AuditLog.log_fallback("add_medicine", "HTTP 503")
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "datastore.degraded",
            "operation": operation,
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry))
