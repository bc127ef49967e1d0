"""
Modello SQLAlchemy per l'entità Client
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Rappresenta l'anagrafica dei clienti proprietari degli animali in pensione,
con le regole contrattuali usate dal motore di fatturazione.
"""


from __future__ import annotations
from typing import Any, Optional, TYPE_CHECKING, List

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import JSONDocument, TimestampMixin, UUIDMixin, SoftDeleteMixin

if TYPE_CHECKING:
    from app.models.animal import Animal
    from app.models.invoice import Invoice


class Client(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per l'anagrafica clienti.

    Attributes:
        id: UUID primary key
        fiscal_name: Nome fiscale / ragione sociale
        nif: Identificativo fiscale (NIF/CIF)
        email: Indirizzo email
        phone: Telefono
        address: Indirizzo completo (copiato nello snapshot delle fatture)
        initials: Sigla di max 3 caratteri usata nella numerazione fatture
        contract_rules: Regole contrattuali (tariffa giornaliera, IVA,
            ritenuta, addebito giorno di ingresso/uscita)

    Relationships:
        animals: Animali del cliente
        invoices: Fatture del cliente
    """

    __tablename__ = "clients"

    # ------------------------------------------------------------
    # Colonne Dati Anagrafici
    # ------------------------------------------------------------
    fiscal_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome fiscale o ragione sociale",
    )

    nif: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="Identificativo fiscale del cliente",
    )

    initials: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="",
        doc="Sigla cliente (max 3 caratteri, maiuscolo) per la numerazione fatture",
    )

    # ------------------------------------------------------------
    # Colonne Contatto
    # ------------------------------------------------------------
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        doc="Numero di telefono",
    )

    address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Indirizzo completo",
    )

    # ------------------------------------------------------------
    # Regole Contrattuali
    # ------------------------------------------------------------
    contract_rules: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=True,
        doc="daily_rate, iva_rate, retention_rate, charge_entry_day, charge_exit_day",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    animals: Mapped[List["Animal"]] = relationship(
        "Animal",
        back_populates="client",
        lazy="noload",
        doc="Animali del cliente",
    )

    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="client",
        lazy="noload",
        doc="Fatture del cliente",
    )

    __table_args__ = (
        Index("ix_clients_fiscal_name", "fiscal_name"),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, fiscal_name={self.fiscal_name}, initials={self.initials})>"
