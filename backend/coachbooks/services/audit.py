from sqlalchemy.orm import Session
from coachbooks.models.audit_log import AuditLog


def record_event(
    s: Session,
    actor: str,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    reference: str | None = None,
    details: dict | None = None,
):
    # Joins the caller's unit of work; committed together with the ledger rows.
    row = AuditLog(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        reference=reference,
        details=details,
    )
    s.add(row)
    return row
