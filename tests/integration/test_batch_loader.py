"""
Integration Tests - Batch Loader
"""
import polars as pl
import pytest

from sales_analytics.analytics.exceptions import IngestionError
from sales_analytics.database.models import FACT_COLUMNS
from sales_analytics.ingestion.batch_loader import BatchLoader, LoadStatus

VALID = (
    "Alice,Commande,Acme,Client A,Client A,GMS,Boissons,Jus,REF-1,{date},"
    "2,10.5,,,EUR,100,5,,,3,,12.25"
)


def csv_bytes(*dates: str) -> bytes:
    lines = [",".join(FACT_COLUMNS)] + [VALID.format(date=d) for d in dates]
    return ("\n".join(lines) + "\n").encode("utf-8")


class TestBatchLoader:
    """Tests for BatchLoader"""

    async def test_partial_load_reports_row_errors(self, store, seed):
        loader = BatchLoader(store)

        result = await loader.load_bytes(
            csv_bytes("15/01/2024", "not a date", "45306", "2024-02-01T10:00:00Z"),
            "ventes.csv",
        )

        assert result.status == LoadStatus.PARTIAL
        assert result.inserted == 3
        assert result.sheet == "ventes.csv"
        assert result.errors == ["Row 3: Unrecognized delivery_date value: not a date"]
        assert await store.count_rows() == 3

    async def test_upload_replaces_previous_rows(self, store, seed):
        seed([{}, {}, {}, {}])
        loader = BatchLoader(store)

        result = await loader.load_bytes(csv_bytes("15/01/2024"), "ventes.csv")

        assert result.status == LoadStatus.COMPLETED
        assert await store.count_rows() == 1

    async def test_nothing_valid_keeps_existing_rows(self, store, seed):
        seed([{}, {}])
        loader = BatchLoader(store)

        with pytest.raises(IngestionError) as exc_info:
            await loader.load_bytes(csv_bytes("never"), "ventes.csv")

        assert exc_info.value.message == (
            "No valid rows to insert. Found 1 issue, including: "
            "Row 2: Unrecognized delivery_date value: never."
        )
        assert exc_info.value.sheet == "ventes.csv"
        assert await store.count_rows() == 2

    async def test_header_only_file(self, store, seed):
        with pytest.raises(IngestionError, match="Sheet is empty"):
            await BatchLoader(store).load_bytes(csv_bytes(), "ventes.csv")

    async def test_parquet_file(self, store, seed, tmp_path):
        path = tmp_path / "ventes.parquet"
        pl.read_csv(csv_bytes("15/01/2024", "16/01/2024"), infer_schema_length=0).write_parquet(path)

        result = await BatchLoader(store).load_file(path)

        assert result.inserted == 2
        assert result.source == str(path)

    async def test_missing_file(self, store, tmp_path):
        with pytest.raises(FileNotFoundError):
            await BatchLoader(store).load_file(tmp_path / "absent.csv")
