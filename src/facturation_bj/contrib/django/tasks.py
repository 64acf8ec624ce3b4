"""Tâches Celery pour la facturation certifiée.

FR: Émission asynchrone d'un brouillon. Une indisponibilité du dispositif
    MECeF ou un conflit de numérotation répété déclenche une nouvelle
    tentative différée ; le brouillon reste intact entre deux tentatives.
EN: Asynchronous issuing of a draft. An unavailable MECeF device or
    repeated numbering conflicts trigger a delayed retry; the draft stays
    untouched between attempts.
"""

import logging

from celery import shared_task

from facturation_bj.errors import AllocationConflict, CertificationFailure

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def finalize_invoice(self, invoice_id: str, user_id: str | None = None) -> str:
    """Émet un brouillon et retourne son numéro légal.

    FR: Instancie le service configuré (FACTURATION_BJ) et appelle
        ``finalize``. Les autres erreurs (document déjà émis, avoir
        invalide...) ne sont pas relancées.
    EN: Builds the configured service and calls ``finalize``. Other errors
        are not retried.
    """
    from facturation_bj.contrib.django.conf import get_invoice_service

    service = get_invoice_service()

    try:
        invoice = service.finalize(invoice_id, user_id=user_id)
    except (CertificationFailure, AllocationConflict) as exc:
        logger.warning(
            "Émission du document %s reportée (tentative %s) : %s",
            invoice_id,
            self.request.retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    logger.info("Document %s émis sous le numéro %s", invoice_id, invoice.number)
    return invoice.number
