"""
Modello SQLAlchemy per l'entità Animal
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Rappresenta gli animali in pensione, identificati dal crotal.
"""

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import JSONDocument, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.client import Client


class Animal(Base, UUIDMixin, TimestampMixin):
    """
    Modello per l'anagrafica animali.

    Le date di ingresso e uscita determinano i giorni fatturabili:
    un animale senza exit_date è ancora presente in stalla.

    Attributes:
        id: UUID primary key
        crotal: Marca auricolare ufficiale
        client_id: UUID del cliente proprietario
        birth_date: Data di nascita
        entry_date: Data di ingresso (obbligatoria)
        exit_date: Data di uscita (None = ancora presente)
        status: ACTIVE, SOLD, DECEASED, HISTORIC
        repro_status: EMPTY, INSEMINATED, PREGNANT
        repro_data: Date e codici toro delle inseminazioni
        observations: Note libere
    """

    __tablename__ = "animals"

    # ------------------------------------------------------------
    # Colonne Relazione Cliente
    # ------------------------------------------------------------
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID del cliente proprietario",
    )

    # ------------------------------------------------------------
    # Colonne Dati Animale
    # ------------------------------------------------------------
    crotal: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Marca auricolare ufficiale",
    )

    birth_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data di nascita",
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Data di ingresso in stalla",
    )

    exit_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data di uscita (None se ancora presente)",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="ACTIVE",
        doc="Stato: ACTIVE, SOLD, DECEASED, HISTORIC",
    )

    # ------------------------------------------------------------
    # Colonne Riproduzione
    # ------------------------------------------------------------
    repro_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="EMPTY",
        doc="Stato riproduttivo: EMPTY, INSEMINATED, PREGNANT",
    )

    repro_data: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=True,
        doc="insem_1_date, insem_1_bull, insem_2_date, insem_2_bull",
    )

    observations: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Osservazioni",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="animals",
        lazy="selectin",
        doc="Cliente proprietario",
    )

    __table_args__ = (
        Index("ix_animals_client_status", "client_id", "status"),
        Index("ix_animals_crotal", "crotal"),
        CheckConstraint(
            "status IN ('ACTIVE', 'SOLD', 'DECEASED', 'HISTORIC')",
            name="ck_animals_status",
        ),
        CheckConstraint(
            "repro_status IN ('EMPTY', 'INSEMINATED', 'PREGNANT')",
            name="ck_animals_repro_status",
        ),
        CheckConstraint(
            "exit_date IS NULL OR exit_date >= entry_date",
            name="ck_animals_exit_after_entry",
        ),
    )

    def __repr__(self) -> str:
        return f"<Animal(id={self.id}, crotal={self.crotal}, status={self.status})>"
