"""Dispositif MECeF simulé pour les tests et le développement.

FR: Reproduit les réponses d'un dispositif e-MECeF de test (NIM
    ``TEST-MECeF-DEVICE-001``) de façon déterministe : compteurs
    séquentiels, signature SHA-256 de la requête. Des points d'accroche
    permettent de simuler un rejet, une indisponibilité ou une latence.
EN: Reproduces an e-MECeF test device deterministically: sequential
    counters, SHA-256 signature of the request. Hooks simulate a rejection,
    an outage or latency.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections import Counter
from datetime import UTC, datetime

from facturation_bj.certification.base import BaseCertifier
from facturation_bj.certification.models import CertificationRequest, CertificationResult
from facturation_bj.errors import CertificationFailure

logger = logging.getLogger(__name__)

SIMULATED_NIM = "TEST-MECeF-DEVICE-001"


class SimulatedCertifier(BaseCertifier):
    """Dispositif MECeF en mémoire.

    FR: ``requests`` conserve chaque requête reçue, y compris celles qui
        échouent. Les compteurs ``n/total TYPE`` avancent par type de
        facture et au total, uniquement sur certification réussie.
    EN: ``requests`` keeps every request received, failed ones included.
        Counters advance per invoice type and overall, on success only.
    """

    def __init__(
        self,
        nim: str = SIMULATED_NIM,
        delay: float = 0.0,
        **kwargs: object,
    ) -> None:
        super().__init__(token="simulated", environment="test")
        self.nim = nim
        self.delay = delay
        self.requests: list[CertificationRequest] = []
        self._available = True
        self._failures: list[str] = []
        self._per_type: Counter[str] = Counter()
        self._total = 0

    # --- Points d'accroche de test ---

    def fail_next(self, reason: str = "Facture rejetée par le dispositif") -> None:
        """Fait échouer la prochaine certification avec le motif donné."""
        self._failures.append(reason)

    def set_available(self, available: bool) -> None:
        """Simule une panne (False) ou un rétablissement (True)."""
        self._available = available

    # --- Interface ---

    async def certify(self, request: CertificationRequest) -> CertificationResult:
        """Certifie la facture après l'éventuelle latence simulée."""
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)

        if not self._available:
            msg = "Dispositif MECeF indisponible"
            raise CertificationFailure(msg)
        if self._failures:
            raise CertificationFailure(self._failures.pop(0))

        self._per_type[request.type] += 1
        self._total += 1
        counters = f"{self._per_type[request.type]}/{self._total} {request.type}"
        dtc = datetime.now(UTC).isoformat()
        signature = self._sign(request, counters, dtc)
        qr_code = ";".join(
            [
                "F",
                self.nim,
                request.company_ifu,
                request.client_ifu or "",
                str(request.type),
                dtc,
                str(request.total_amount),
                counters,
                signature,
            ]
        )
        logger.debug("Facture certifiée par %s : %s", self.nim, counters)
        return CertificationResult(
            nim=self.nim,
            counters=counters,
            dtc=dtc,
            qr_code=qr_code,
            signature=signature,
            type=request.type,
        )

    async def check_status(self) -> bool:
        return self._available

    def _sign(self, request: CertificationRequest, counters: str, dtc: str) -> str:
        """Signature de 64 caractères hexadécimaux majuscules."""
        payload = "|".join(
            [self.nim, counters, dtc, request.model_dump_json()]
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest().upper()
