from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import polars as pl
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from charge_planner.models import ChargingStation
from charge_planner.services.availability import normalize_availability, normalize_status_label

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"Station ID", "Name", "Latitude", "Longitude"}
OPTIONAL_COLUMNS = ("Operator", "Address", "City", "Power", "Connectors", "Port Powers", "Status")
UPDATE_FIELDS = [
    "name",
    "operator",
    "address",
    "city",
    "connectors",
    "power",
    "ports",
    "availability",
    "status_label",
    "latitude",
    "longitude",
    "coordinate_key",
]


class Command(BaseCommand):
    help = "Import and normalize charging stations from a CSV export using Polars."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--csv-path",
            type=str,
            default=str(settings.STATION_IMPORT_CSV),
            help="Path to the source charging stations CSV",
        )
        parser.add_argument(
            "--replace",
            action="store_true",
            help="Delete existing stations before importing",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"CSV file does not exist: {csv_path}")

        frame = self._load_and_transform(csv_path)
        records = [self._to_fields(row) for row in frame.to_dicts()]
        logger.info("Normalized %s station rows from %s", len(records), csv_path)

        if options["replace"]:
            ChargingStation.objects.all().delete()

        existing = {
            station.external_id: station
            for station in ChargingStation.objects.filter(
                external_id__in=[row["external_id"] for row in records]
            )
        }

        to_create: list[ChargingStation] = []
        to_update: list[ChargingStation] = []

        for row in records:
            station = existing.get(row["external_id"])
            if station is None:
                to_create.append(ChargingStation(**row))
                continue

            for field in UPDATE_FIELDS:
                setattr(station, field, row[field])
            to_update.append(station)

        if to_create:
            ChargingStation.objects.bulk_create(to_create, batch_size=1000)
        if to_update:
            ChargingStation.objects.bulk_update(to_update, UPDATE_FIELDS, batch_size=1000)

        self.stdout.write(
            self.style.SUCCESS(
                "Imported charging stations: "
                + (
                    f"{len(records)} rows normalized, "
                    f"{len(to_create)} created, {len(to_update)} updated"
                )
            )
        )

    @staticmethod
    def _load_and_transform(csv_path: Path) -> pl.DataFrame:
        frame = pl.read_csv(csv_path, infer_schema_length=0)
        missing_columns = REQUIRED_COLUMNS.difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        absent_columns = [column for column in OPTIONAL_COLUMNS if column not in frame.columns]
        if absent_columns:
            frame = frame.with_columns(
                [pl.lit(None, dtype=pl.Utf8).alias(column) for column in absent_columns]
            )

        def text(column: str, alias: str) -> pl.Expr:
            return pl.col(column).cast(pl.Utf8, strict=False).str.strip_chars().fill_null("").alias(alias)

        normalized = (
            frame.select(
                text("Station ID", "external_id"),
                text("Name", "name"),
                text("Operator", "operator"),
                text("Address", "address"),
                text("City", "city"),
                text("Power", "power"),
                text("Connectors", "connectors"),
                text("Port Powers", "port_powers"),
                text("Status", "status"),
                pl.col("Latitude").cast(pl.Float64, strict=False).alias("latitude"),
                pl.col("Longitude").cast(pl.Float64, strict=False).alias("longitude"),
            )
            .filter(
                (pl.col("external_id").str.len_chars() > 0)
                & (pl.col("name").str.len_chars() > 0)
                & pl.col("latitude").is_not_null()
                & pl.col("longitude").is_not_null()
            )
            .with_columns(
                pl.format(
                    "{},{}", pl.col("longitude").round(4), pl.col("latitude").round(4)
                ).alias("coordinate_key"),
                pl.max_horizontal(
                    pl.col("port_powers")
                    .str.split(";")
                    .list.eval(pl.element().str.strip_chars().cast(pl.Float64, strict=False))
                    .list.max(),
                    pl.col("power").str.extract(r"([\d.]+)", 1).cast(pl.Float64, strict=False),
                )
                .fill_null(0.0)
                .alias("rank_power_kw"),
            )
            # Stations reported by several sources share a coordinate key.
            .sort(["coordinate_key", "rank_power_kw", "external_id"], descending=[False, True, False])
            .unique(subset=["coordinate_key"], keep="first", maintain_order=True)
            .unique(subset=["external_id"], keep="first", maintain_order=True)
        )

        return normalized

    @staticmethod
    def _to_fields(row: dict[str, Any]) -> dict[str, Any]:
        ports = []
        for token in row["port_powers"].split(";"):
            try:
                power_kw = float(token.strip())
            except ValueError:
                continue
            if power_kw > 0:
                ports.append({"power_kw": power_kw, "availability": "unknown"})

        return {
            "external_id": row["external_id"],
            "name": row["name"],
            "operator": row["operator"],
            "address": row["address"],
            "city": row["city"],
            "connectors": [part.strip() for part in row["connectors"].split(";") if part.strip()],
            "power": row["power"],
            "ports": ports,
            "availability": normalize_availability(row["status"]),
            "status_label": normalize_status_label(row["status"]) or "",
            "latitude": row["latitude"],
            "longitude": row["longitude"],
            "coordinate_key": row["coordinate_key"],
        }
