"""
Schemas Pydantic per l'entità Client
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Contiene:
- ContractRules: regole contrattuali di fatturazione (valore immutabile)
- Schemas CRUD per Client
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.types import Money


# -------------------------------------------------------------------
# Regole contrattuali
# -------------------------------------------------------------------

class ContractRules(BaseModel):
    """
    Regole contrattuali del cliente.

    Immutabile: ogni fattura ne costruisce una nuova istanza dal JSON
    salvato sul cliente, così i default non sono mai condivisi.
    Chiavi mancanti o null prendono il valore di default; 0 è un
    valore valido.
    """

    daily_rate: Money = Field(
        default=Decimal("2.5"),
        ge=0,
        description="Tariffa giornaliera per animale",
    )
    iva_rate: Money = Field(
        default=Decimal("10"),
        ge=0,
        description="Aliquota IVA (%)",
    )
    retention_rate: Money = Field(
        default=Decimal("2"),
        ge=0,
        description="Aliquota ritenuta (%)",
    )
    charge_entry_day: bool = Field(
        default=True,
        description="Addebita il giorno di ingresso",
    )
    charge_exit_day: bool = Field(
        default=False,
        description="Addebita il giorno di uscita",
    )

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_null_values(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_raw(cls, raw: Optional[dict[str, Any]]) -> "ContractRules":
        """Costruisce le regole dal JSON salvato sul cliente."""
        return cls.model_validate(raw or {})

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# -------------------------------------------------------------------
# Schemas per Client
# -------------------------------------------------------------------

def _normalize_initials(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().upper()[:3]


class ClientBase(BaseModel):
    """Campi comuni dell'anagrafica cliente."""

    fiscal_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Nome fiscale / ragione sociale",
    )
    nif: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Identificativo fiscale",
    )
    email: Optional[str] = Field(None, max_length=255, description="Email")
    phone: Optional[str] = Field(None, max_length=20, description="Telefono")
    address: Optional[str] = Field(None, description="Indirizzo completo")
    initials: Optional[str] = Field(
        None,
        description="Sigla (max 3 caratteri); se omessa viene suggerita dal nome fiscale",
    )
    contract_rules: ContractRules = Field(
        default_factory=ContractRules,
        description="Regole contrattuali di fatturazione",
    )

    @field_validator("fiscal_name", "nif")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il campo non può essere vuoto")
        return v

    @field_validator("initials")
    @classmethod
    def normalize_initials(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_initials(v)


class ClientCreate(ClientBase):
    """Schema per la creazione di un cliente."""
    pass


class ClientUpdate(BaseModel):
    """Aggiornamento parziale: solo i campi valorizzati vengono scritti."""

    fiscal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    nif: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    initials: Optional[str] = None
    contract_rules: Optional[ContractRules] = None

    @field_validator("fiscal_name", "nif")
    @classmethod
    def strip_required(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Il campo non può essere vuoto")
        return v

    @field_validator("initials")
    @classmethod
    def normalize_initials(cls, v: Optional[str]) -> Optional[str]:
        # La sigla serve alla numerazione: non può diventare vuota
        v = _normalize_initials(v)
        if v == "":
            raise ValueError("La sigla non può essere vuota")
        return v


class ClientRead(ClientBase):
    """Schema di lettura del cliente."""

    id: uuid.UUID
    initials: str = ""
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientList(BaseModel):
    """Lista paginata di clienti."""

    items: list[ClientRead]
    total: int
    page: int
    per_page: int


class InitialsSuggestion(BaseModel):
    """Sigla suggerita per un nome fiscale."""

    fiscal_name: str
    initials: str
