"""
Mixin e tipi SQLAlchemy condivisi
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Mixin riutilizzabili per identità, timestamp e soft delete,
più il tipo JSON usato per regole contrattuali e snapshot fattura.
"""

import datetime
import uuid

from sqlalchemy import JSON, Boolean, DateTime, Uuid
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


# JSONB su PostgreSQL, JSON generico altrove (es. SQLite nei test)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class SoftDeleteMixin:
    """
    Cancellazione logica tramite flag is_active.

    Usato per i clienti: animali e fatture li referenziano per ID
    e devono continuare a risolvere anche dopo l'eliminazione.
    """

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="Flag per soft delete: False = eliminato, True = attivo",
    )


class TimestampMixin:
    """
    Campi created_at / updated_at gestiti automaticamente.

    created_at è valorizzato dal server, updated_at dal listener before_flush.
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora di creazione del record",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora ultimo aggiornamento del record",
    )


class UUIDMixin:
    """Primary key UUID generata lato applicazione."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Aggiorna updated_at per gli oggetti nuovi e per quelli realmente modificati.
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if hasattr(obj, "updated_at") and session.is_modified(obj, include_collections=False):
            obj.updated_at = now

    for obj in session.new:
        if hasattr(obj, "updated_at"):
            obj.updated_at = now
