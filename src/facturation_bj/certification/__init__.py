"""Certification fiscale des factures auprès du dispositif e-MECeF.

FR: Interface abstraite des dispositifs de certification (DGI Bénin)
    et modèles de données des échanges.
EN: Abstract certification device interface (Benin tax authority)
    and exchange data models.
"""

from facturation_bj.certification.base import BaseCertifier
from facturation_bj.certification.models import (
    CertificationItem,
    CertificationRequest,
    CertificationResult,
)

__all__ = [
    "BaseCertifier",
    "CertificationItem",
    "CertificationRequest",
    "CertificationResult",
]
