from __future__ import annotations

from pathlib import Path

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from charge_planner.models import ChargingStation

HEADER = "Station ID,Name,Operator,City,Power,Connectors,Port Powers,Status,Latitude,Longitude"


def _write_csv(tmp_path: Path, rows: list[str], header: str = HEADER) -> Path:
    csv_path = tmp_path / "stations.csv"
    csv_path.write_text("\n".join([header, *rows]), encoding="utf-8")
    return csv_path


@pytest.mark.django_db
def test_import_charging_stations_deduplicates_and_normalizes(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        [
            "lim-1,Marina AC,EAC,Limassol,22 kW,Type 2,,Available,34.67001,33.04001",
            "lim-2,Marina DC,EAC,Limassol,150 kW,CCS; Type 2,150;50,Charging,34.67002,33.04002",
            "nic-1,No Position,EAC,Nicosia,50 kW,CCS,,Available,,33.38",
            "pap-1,Harbour,Plugin,Paphos,50 kW,CCS;CHAdeMO,50,Faulted,34.7540,32.4080",
        ],
    )

    call_command("import_charging_stations", csv_path=str(csv_path))

    assert sorted(ChargingStation.objects.values_list("external_id", flat=True)) == [
        "lim-2",
        "pap-1",
    ]

    marina = ChargingStation.objects.get(external_id="lim-2")
    assert marina.coordinate_key == "33.04,34.67"
    assert marina.connectors == ["CCS", "Type 2"]
    assert marina.ports == [
        {"power_kw": 150.0, "availability": "unknown"},
        {"power_kw": 50.0, "availability": "unknown"},
    ]
    assert marina.availability == ChargingStation.Availability.OCCUPIED
    assert marina.status_label == "Charging"

    harbour = ChargingStation.objects.get(external_id="pap-1")
    assert harbour.availability == ChargingStation.Availability.OUT_OF_SERVICE
    assert harbour.latitude == pytest.approx(34.754)


@pytest.mark.django_db
def test_import_charging_stations_updates_existing_rows(tmp_path: Path) -> None:
    ChargingStation.objects.create(external_id="pap-1", name="Old name", city="Paphos")
    csv_path = _write_csv(
        tmp_path,
        ["pap-1,Harbour,Plugin,Paphos,50 kW,CCS,50,Available,34.7540,32.4080"],
    )

    call_command("import_charging_stations", csv_path=str(csv_path))

    station = ChargingStation.objects.get(external_id="pap-1")
    assert station.name == "Harbour"
    assert station.availability == ChargingStation.Availability.AVAILABLE
    assert ChargingStation.objects.count() == 1


@pytest.mark.django_db
def test_import_charging_stations_accepts_minimal_columns(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        ["lar-1,Airport,34.8750,33.6240"],
        header="Station ID,Name,Latitude,Longitude",
    )

    call_command("import_charging_stations", csv_path=str(csv_path))

    station = ChargingStation.objects.get(external_id="lar-1")
    assert station.availability == ChargingStation.Availability.UNKNOWN
    assert station.ports == []
    assert station.connectors == []


def test_import_charging_stations_requires_core_columns(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, ["x,Nowhere"], header="Station ID,Name")

    with pytest.raises(CommandError, match="Missing expected columns"):
        call_command("import_charging_stations", csv_path=str(csv_path))
