"""
Schemas Pydantic per l'entità Animal
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce gli schemi di validazione e serializzazione per l'API.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AnimalStatus(str, Enum):
    """Stati anagrafici dell'animale."""
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    DECEASED = "DECEASED"
    HISTORIC = "HISTORIC"


class ReproStatus(str, Enum):
    """Stati riproduttivi."""
    EMPTY = "EMPTY"
    INSEMINATED = "INSEMINATED"
    PREGNANT = "PREGNANT"


# -------------------------------------------------------------------
# Dati riproduttivi
# -------------------------------------------------------------------

class ReproData(BaseModel):
    """Date e codici toro delle due inseminazioni."""

    insem_1_date: Optional[date] = None
    insem_1_bull: Optional[str] = Field(None, max_length=100)
    insem_2_date: Optional[date] = None
    insem_2_bull: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_to_none(cls, v: Any) -> Any:
        # I form inviano "" per i campi lasciati vuoti
        if isinstance(v, str) and not v.strip():
            return None
        return v


def _check_exit_after_entry(entry_date: Optional[date], exit_date: Optional[date]) -> None:
    if entry_date is not None and exit_date is not None and exit_date < entry_date:
        raise ValueError("La data di uscita non può essere precedente alla data di ingresso")


# -------------------------------------------------------------------
# Schemas per Animal
# -------------------------------------------------------------------

class AnimalBase(BaseModel):
    """Campi comuni dell'anagrafica animale."""

    crotal: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Marca auricolare ufficiale",
    )
    client_id: uuid.UUID = Field(..., description="UUID del cliente proprietario")
    birth_date: Optional[date] = Field(None, description="Data di nascita")
    entry_date: date = Field(..., description="Data di ingresso in stalla")
    exit_date: Optional[date] = Field(None, description="Data di uscita")
    status: AnimalStatus = Field(default=AnimalStatus.ACTIVE)
    repro_status: ReproStatus = Field(default=ReproStatus.EMPTY)
    repro_data: Optional[ReproData] = None
    observations: Optional[str] = None

    @field_validator("crotal")
    @classmethod
    def normalize_crotal(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Il crotal non può essere vuoto")
        return v


class AnimalCreate(AnimalBase):
    """Schema per la registrazione di un animale."""

    @model_validator(mode="after")
    def validate_dates(self) -> "AnimalCreate":
        _check_exit_after_entry(self.entry_date, self.exit_date)
        return self


class AnimalUpdate(BaseModel):
    """
    Aggiornamento parziale dell'animale.

    La coerenza tra ingresso e uscita viene verificata qui solo se
    entrambe le date sono presenti nel payload; il service la
    ricontrolla sui valori risultanti.
    """

    crotal: Optional[str] = Field(None, min_length=1, max_length=50)
    client_id: Optional[uuid.UUID] = None
    birth_date: Optional[date] = None
    entry_date: Optional[date] = None
    exit_date: Optional[date] = None
    status: Optional[AnimalStatus] = None
    repro_status: Optional[ReproStatus] = None
    repro_data: Optional[ReproData] = None
    observations: Optional[str] = None

    @field_validator("crotal")
    @classmethod
    def normalize_crotal(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        if not v:
            raise ValueError("Il crotal non può essere vuoto")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "AnimalUpdate":
        _check_exit_after_entry(self.entry_date, self.exit_date)
        return self


class AnimalRead(AnimalBase):
    """Schema di lettura dell'animale."""

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnimalList(BaseModel):
    """Lista paginata di animali."""

    items: list[AnimalRead]
    total: int
    page: int
    per_page: int
