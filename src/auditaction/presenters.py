def audit_entry_to_dto(entry) -> dict:
    return {
        "id": entry.id,
        "action": entry.action,
        "actor_id": entry.actor_id,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "lifecycle_context": entry.lifecycle_context or {},
        "created_at": entry.created_at.isoformat(),
    }
