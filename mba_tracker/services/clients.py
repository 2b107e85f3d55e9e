from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from mba_tracker.core.audit import AuditAction, EntityType
from mba_tracker.core.changes import compute_changes
from mba_tracker.core.errors import NotFoundError
from mba_tracker.models.client import Client
from mba_tracker.schemas.client import ClientCreate, ClientUpdate
from mba_tracker.schemas.snapshots import ClientSnapshot
from mba_tracker.services.utils import Actor, audit_mutation

logger = logging.getLogger(__name__)


def get_client(db: Session, client_id: str) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


def list_clients(db: Session) -> list[Client]:
    return db.query(Client).order_by(Client.name.asc()).all()


def create_client(db: Session, payload: ClientCreate, actor: Optional[Actor] = None) -> Client:
    client = Client(name=payload.name)
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("client created id=%s", client.id)

    audit_mutation(EntityType.CLIENT, client.id, AuditAction.CREATE, actor=actor)
    return client


def update_client(
    db: Session, client_id: str, payload: ClientUpdate, actor: Optional[Actor] = None
) -> Client:
    client = get_client(db, client_id)
    before = ClientSnapshot.from_model(client)

    client.name = payload.name
    db.commit()
    db.refresh(client)

    changes = compute_changes(before, ClientSnapshot.from_model(client), ClientSnapshot.tracked_fields())
    if changes:
        audit_mutation(EntityType.CLIENT, client.id, AuditAction.UPDATE, changes=changes, actor=actor)
    return client


def delete_client(db: Session, client_id: str, actor: Optional[Actor] = None) -> None:
    """Delete a client together with its MBAs, their spend and allocations."""
    client = get_client(db, client_id)
    db.delete(client)
    db.commit()
    logger.info("client deleted id=%s", client_id)

    audit_mutation(EntityType.CLIENT, client_id, AuditAction.DELETE, actor=actor)
