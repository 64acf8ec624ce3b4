"""Journal d'audit des mutations."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from facturation_bj.models.enums import AuditAction


class AuditEntity(StrEnum):
    """Type d'entité concernée par une entrée d'audit."""

    INVOICE = "INVOICE"
    PAYMENT = "PAYMENT"


class AuditEntry(BaseModel):
    """Entrée du journal d'audit.

    FR: Écrite dans la même transaction que la mutation qu'elle décrit.
        ``old_values`` et ``new_values`` contiennent des valeurs JSON.
    EN: Written in the same transaction as the mutation it records.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), description="Identifiant / ID")
    company_id: str = Field(..., description="Société / Company")
    action: AuditAction = Field(..., description="Action / Action")
    entity_type: AuditEntity = Field(..., description="Type d'entité / Entity type")
    entity_id: str = Field(..., description="Identifiant de l'entité / Entity ID")
    user_id: str | None = Field(default=None, description="Utilisateur / User")
    old_values: dict[str, Any] | None = Field(default=None, description="Avant / Before")
    new_values: dict[str, Any] | None = Field(default=None, description="Après / After")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Horodatage / Timestamp",
    )
