"""Tests du dispositif MECeF simulé."""

from decimal import Decimal

import pytest

from facturation_bj.certification.connectors.simulated import (
    SIMULATED_NIM,
    SimulatedCertifier,
)
from facturation_bj.certification.models import (
    CertificationItem,
    CertificationRequest,
    CertificationResult,
)
from facturation_bj.errors import CertificationFailure
from facturation_bj.models.enums import MecefType, TvaGroup


@pytest.fixture
def request_fv() -> CertificationRequest:
    return CertificationRequest(
        company_ifu="3201900123456",
        client_ifu="0202212345678",
        client_name="Société Atlantique",
        items=[
            CertificationItem(
                name="Prestation de conseil",
                quantity=Decimal("2"),
                unit_price=Decimal("50000"),
                tva_group=TvaGroup.B,
            )
        ],
        total_amount=Decimal("118000.00"),
        type=MecefType.FV,
    )


class TestCertify:
    """Tests de certification."""

    async def test_returns_result(self, request_fv):
        result = await SimulatedCertifier().certify(request_fv)
        assert isinstance(result, CertificationResult)
        assert result.nim == SIMULATED_NIM
        assert result.type == MecefType.FV

    async def test_counters_sequential(self, request_fv):
        certifier = SimulatedCertifier()
        first = await certifier.certify(request_fv)
        second = await certifier.certify(request_fv)
        credit = await certifier.certify(request_fv.model_copy(update={"type": MecefType.FA}))
        assert first.counters == "1/1 FV"
        assert second.counters == "2/2 FV"
        assert credit.counters == "1/3 FA"

    async def test_signature_format(self, request_fv):
        result = await SimulatedCertifier().certify(request_fv)
        assert len(result.signature) == 64
        assert result.signature == result.signature.upper()
        int(result.signature, 16)

    async def test_qr_code_payload(self, request_fv):
        result = await SimulatedCertifier().certify(request_fv)
        fields = result.qr_code.split(";")
        assert fields[0] == "F"
        assert fields[1] == SIMULATED_NIM
        assert fields[2] == "3201900123456"
        assert fields[3] == "0202212345678"
        assert fields[4] == "FV"
        assert fields[6] == "118000.00"
        assert fields[-1] == result.signature

    async def test_records_requests(self, request_fv):
        certifier = SimulatedCertifier()
        await certifier.certify(request_fv)
        assert certifier.requests == [request_fv]

    async def test_custom_nim(self, request_fv):
        result = await SimulatedCertifier(nim="NIM-42").certify(request_fv)
        assert result.nim == "NIM-42"


class TestFailures:
    """Tests des points d'accroche de panne."""

    async def test_fail_next(self, request_fv):
        certifier = SimulatedCertifier()
        certifier.fail_next("IFU acheteur inconnu")
        with pytest.raises(CertificationFailure) as exc_info:
            await certifier.certify(request_fv)
        assert exc_info.value.reason == "IFU acheteur inconnu"
        # Une seule fois, et les compteurs n'ont pas avancé
        result = await certifier.certify(request_fv)
        assert result.counters == "1/1 FV"

    async def test_unavailable(self, request_fv):
        certifier = SimulatedCertifier()
        certifier.set_available(False)
        assert await certifier.check_status() is False
        with pytest.raises(CertificationFailure, match="indisponible"):
            await certifier.certify(request_fv)
        certifier.set_available(True)
        assert await certifier.check_status() is True
        await certifier.certify(request_fv)

    async def test_failed_requests_are_recorded(self, request_fv):
        certifier = SimulatedCertifier()
        certifier.set_available(False)
        with pytest.raises(CertificationFailure):
            await certifier.certify(request_fv)
        assert len(certifier.requests) == 1


class TestRequestModel:
    """Tests du modèle de requête."""

    def test_ifu_pattern(self, request_fv):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            CertificationRequest.model_validate(
                request_fv.model_dump() | {"company_ifu": "123"}
            )

    def test_items_required(self, request_fv):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            CertificationRequest.model_validate(request_fv.model_dump() | {"items": []})
