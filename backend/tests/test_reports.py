"""
Tests für Ernte- und Effizienzauswertungen
"""
import pytest
from datetime import date
from decimal import Decimal

from farmflow.models.enums import BatchStatus
from farmflow.schemas.production import BatchCreate, HarvestCreate
from farmflow.services.dashboard import DashboardService
from farmflow.services.production import BatchService

SOW = date(2024, 6, 1)


@pytest.fixture
def harvested(db, tenant_id, microgreen_crop, mushroom_crop):
    """Microgreen-Charge komplett geerntet, Pilzcharge nach zwei von drei Flushes"""
    batches = BatchService(db)
    tray = batches.create_batch(
        tenant_id, BatchCreate(crop_id=microgreen_crop.id, quantity=5, planned_sow_date=SOW)
    )
    batches.update_status(tenant_id, tray.id, BatchStatus.PLANTED, SOW)
    batches.update_status(tenant_id, tray.id, BatchStatus.GROWING, date(2024, 6, 5))
    batches.record_harvest(
        tenant_id, tray.id, HarvestCreate(harvest_date=date(2024, 6, 15), quantity=Decimal("38.5"))
    )

    block = batches.create_batch(
        tenant_id, BatchCreate(crop_id=mushroom_crop.id, quantity=4, planned_sow_date=SOW)
    )
    for status in (BatchStatus.INOCULATED, BatchStatus.INCUBATING, BatchStatus.FRUITING):
        batches.update_status(tenant_id, block.id, status, SOW)
    for day in (date(2024, 6, 22), date(2024, 6, 29)):
        batches.record_harvest(tenant_id, block.id, HarvestCreate(harvest_date=day, quantity=Decimal("20")))
    return tray, block


class TestHarvestSummary:
    """Tests für die Erntezusammenfassung"""

    def test_totals_by_crop(self, db, tenant_id, harvested):
        summary = DashboardService(db).harvest_summary(tenant_id, date(2024, 6, 1), date(2024, 6, 30))

        assert summary["total_harvests"] == 3
        assert summary["total_quantity"] == Decimal("78.5")
        assert summary["by_crop"]["Radieschen"] == {"quantity": Decimal("38.5"), "count": 1}
        assert summary["by_crop"]["Austernpilz"] == {"quantity": Decimal("40"), "count": 2}
        assert [h["harvest_date"] for h in summary["harvests"]] == [
            date(2024, 6, 29), date(2024, 6, 22), date(2024, 6, 15),
        ]
        assert summary["harvests"][0]["flush_number"] == 2

    def test_date_filter(self, db, tenant_id, harvested):
        summary = DashboardService(db).harvest_summary(tenant_id, end=date(2024, 6, 20))
        assert summary["total_harvests"] == 1
        assert list(summary["by_crop"]) == ["Radieschen"]

    def test_other_tenant_sees_nothing(self, db, other_tenant_id, harvested):
        assert DashboardService(db).harvest_summary(other_tenant_id)["total_harvests"] == 0


class TestProductionEfficiency:
    """Tests für erwarteten gegen tatsächlichen Ertrag"""

    def test_only_harvested_batches(self, db, tenant_id, harvested):
        """Test: 38,5 von 40 oz = 96,3 %; Pilzcharge mit offenem Flush zählt nicht"""
        tray, _ = harvested
        report = DashboardService(db).production_efficiency(tenant_id)

        assert report["total_batches"] == 1
        [metric] = report["batches"]
        assert metric["batch_code"] == tray.batch_code
        assert metric["expected_yield"] == Decimal("40")
        assert metric["efficiency"] == Decimal("96.3")
        assert metric["cycle_days"] == 14
        assert report["overall_efficiency"] == Decimal("96.3")

    def test_empty_period(self, db, tenant_id, harvested):
        report = DashboardService(db).production_efficiency(tenant_id, start=date(2024, 6, 16))
        assert report["total_batches"] == 0
        assert report["overall_efficiency"] == Decimal("0.0")


class TestReportsAPI:

    def test_report_endpoints(self, client, harvested):
        response = client.get(
            "/api/v1/dashboard/reports/harvest-summary",
            params={"start_date": "2024-06-01", "end_date": "2024-06-30"},
        )
        assert response.status_code == 200
        assert response.json()["total_harvests"] == 3

        response = client.get("/api/v1/dashboard/reports/production-efficiency")
        assert response.status_code == 200
        assert Decimal(response.json()["overall_efficiency"]) == Decimal("96.3")
