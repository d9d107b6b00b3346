import math
from contextlib import nullcontext
from types import SimpleNamespace

import numpy as np
import numpy.ma as ma
import pytest
from affine import Affine

from domain.resistance.errors import (
    InsufficientMemoryError,
    InvalidGeotransformError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.resistance.ranges import WGS84_LONGLAT

# Use infrastructure.* (not src.infrastructure.*) so monkeypatch paths match
# import paths.
from infrastructure.raster.ascii_grid_adapter import AsciiGridElevationAdapter
from tests.conftest_utils import write_ascii_grid


class FakeCRS:
    def __init__(self, code: str | None):
        self._code = code

    def to_string(self) -> str:
        return self._code or ""

    def __str__(self) -> str:
        return self._code or ""


class FakeDataset:
    def __init__(
        self,
        *,
        count: int = 1,
        crs: str | None = None,
        transform=None,
        width: int = 4,
        height: int = 3,
        nodata=-9999.0,
    ):
        self.count = count
        self.crs = FakeCRS(crs) if crs is not None else None
        self.transform = (
            transform
            if transform is not None
            else Affine.translation(-75.0, 5.0) * Affine.scale(0.01, -0.01)
        )
        self.width = width
        self.height = height
        self.nodata = nodata

    def read(self, band: int, *, masked: bool, out_dtype: str):
        # Default: gradient 2000..3100 with single masked cell at (0, 0)
        data = np.linspace(
            2000, 3100, self.width * self.height, dtype=out_dtype
        ).reshape(self.height, self.width)
        m = np.zeros_like(data, dtype=bool)
        m[0, 0] = True
        return ma.MaskedArray(data, mask=m)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_open(monkeypatch):
    """Route rasterio.open to a FakeDataset; returns a setter."""

    def _use(ds):
        monkeypatch.setattr("rasterio.open", lambda path: ds)
        monkeypatch.setattr("rasterio.Env", lambda *a, **k: nullcontext())
        return ds

    return _use


@pytest.fixture
def asc_file(tmp_path):
    p = tmp_path / "dem.asc"
    p.write_bytes(b"x")
    return p


def test_file_not_found_raises(tmp_path):
    adapter = AsciiGridElevationAdapter()
    with pytest.raises(FileNotFoundError):
        adapter.load_dem(tmp_path / "missing.asc")


def test_unsupported_extension_rejected(tmp_path):
    p = tmp_path / "image.png"
    p.write_bytes(b"x")
    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(p)


def test_empty_file_raises(tmp_path):
    p = tmp_path / "empty.asc"
    p.write_bytes(b"")
    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(p)


def test_symlink_rejected(tmp_path, ascii_dem):
    link = tmp_path / "link.asc"
    link.symlink_to(ascii_dem)
    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(link)


def test_permission_error_raises(asc_file, monkeypatch):
    def _raise_permission_error(_):
        raise PermissionError("permission denied")

    monkeypatch.setattr("rasterio.open", _raise_permission_error)
    monkeypatch.setattr("rasterio.Env", lambda *a, **k: nullcontext())

    with pytest.raises(PermissionError):
        AsciiGridElevationAdapter().load_dem(asc_file)


def test_happy_path_assigns_crs(asc_file, fake_open):
    fake_open(FakeDataset())

    grid = AsciiGridElevationAdapter().load_dem(asc_file)

    assert grid.crs == WGS84_LONGLAT
    assert grid.data.dtype == np.float64
    assert grid.shape == (3, 4)
    assert math.isclose(grid.resolution[0], 0.01)
    assert math.isclose(grid.resolution[1], 0.01)
    assert math.isclose(grid.bounds.min_x, -75.0)
    assert math.isclose(grid.bounds.max_y, 5.0)
    assert grid.source_nodata == -9999.0
    assert np.isnan(grid.data[0, 0])
    assert grid.data[2, 3] == 3100.0


def test_file_crs_replaced_with_warning(asc_file, fake_open, caplog):
    fake_open(FakeDataset(crs="EPSG:32718"))

    caplog.set_level("WARNING")
    grid = AsciiGridElevationAdapter().load_dem(asc_file)

    assert grid.crs == WGS84_LONGLAT
    assert "replacing file CRS EPSG:32718" in caplog.text


@pytest.mark.parametrize(
    "file_crs", ["EPSG:4326", "+proj=longlat +datum=WGS84 +no_defs"]
)
def test_equivalent_file_crs_replaced_silently(asc_file, fake_open, caplog, file_crs):
    fake_open(FakeDataset(crs=file_crs))

    caplog.set_level("WARNING")
    grid = AsciiGridElevationAdapter().load_dem(asc_file)

    assert grid.crs == WGS84_LONGLAT
    assert "replacing file CRS" not in caplog.text


def test_file_crs_kept_without_assignment(asc_file, fake_open):
    fake_open(FakeDataset(crs="EPSG:4326"))
    grid = AsciiGridElevationAdapter(assign_crs=None).load_dem(asc_file)
    assert grid.crs == "EPSG:4326"


def test_missing_crs_without_assignment(asc_file, fake_open):
    fake_open(FakeDataset(crs=None))
    with pytest.raises(MissingCRSError):
        AsciiGridElevationAdapter(assign_crs=None).load_dem(asc_file)


def test_multiband_rejected(asc_file, fake_open):
    fake_open(FakeDataset(count=3))
    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(asc_file)


def test_bandless_rejected(asc_file, fake_open):
    fake_open(FakeDataset(count=0))
    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(asc_file)


@pytest.mark.parametrize(
    "transform",
    [
        SimpleNamespace(a=1, b=0, c=0, d=0, e=-1, f=0),
        Affine(float("nan"), 0, 0, 0, -1, 0),
        Affine(0, 0, 0, 0, -1, 0),
        Affine(0.01, 0.001, -75.0, 0.0, -0.01, 5.0),
        Affine(0.01, 0.0, -75.0, 0.002, -0.01, 5.0),
    ],
)
def test_invalid_transform_rejected(asc_file, fake_open, transform):
    fake_open(FakeDataset(transform=transform))
    with pytest.raises(InvalidGeotransformError):
        AsciiGridElevationAdapter().load_dem(asc_file)


def test_memory_budget_enforced(asc_file, fake_open):
    fake_open(FakeDataset(width=100, height=100))
    with pytest.raises(InsufficientMemoryError):
        AsciiGridElevationAdapter(max_bytes=1000).load_dem(asc_file)


def test_mask_drives_nodata_without_declared_value(asc_file, fake_open, monkeypatch):
    ds = fake_open(FakeDataset(nodata=None))

    def fake_read(self, band, *, masked, out_dtype):
        data = np.array([[-9999.0, 2500.0], [2600.0, 2700.0]], dtype=out_dtype)
        return ma.MaskedArray(data, mask=[[True, False], [False, False]])

    monkeypatch.setattr(FakeDataset, "read", fake_read)
    ds.width, ds.height = 2, 2

    grid = AsciiGridElevationAdapter().load_dem(asc_file)
    assert np.isnan(grid.data[0, 0])
    assert grid.data[1, 1] == 2700.0
    assert grid.source_nodata is None


@pytest.mark.parametrize("bad", [np.inf, -np.inf])
def test_infinite_elevation_rejected(asc_file, fake_open, monkeypatch, bad):
    fake_open(FakeDataset())

    def fake_read(self, band, *, masked, out_dtype):
        data = np.full((3, 4), 2500.0, dtype=out_dtype)
        data[1, 2] = bad
        return ma.MaskedArray(data, mask=np.zeros((3, 4), dtype=bool))

    monkeypatch.setattr(FakeDataset, "read", fake_read)

    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(asc_file)


def test_all_nodata_returned_with_warning(asc_file, fake_open, monkeypatch, caplog):
    fake_open(FakeDataset())

    def fake_read(self, band, *, masked, out_dtype):
        data = np.zeros((3, 4), dtype=out_dtype)
        return ma.MaskedArray(data, mask=np.ones((3, 4), dtype=bool))

    monkeypatch.setattr(FakeDataset, "read", fake_read)

    caplog.set_level("WARNING")
    grid = AsciiGridElevationAdapter().load_dem(asc_file)
    assert grid.is_all_nodata()
    assert "every cell is NoData" in caplog.text


def test_logging_high_nodata_warning(asc_file, fake_open, monkeypatch, caplog):
    fake_open(FakeDataset(width=10, height=10))

    def fake_read(self, band, *, masked, out_dtype):
        data = np.full((10, 10), 3000.0, dtype=out_dtype)
        m = np.zeros((10, 10), dtype=bool)
        m[:9, :] = True  # 90% masked
        return ma.MaskedArray(data, mask=m)

    monkeypatch.setattr(FakeDataset, "read", fake_read)

    caplog.set_level("WARNING")
    AsciiGridElevationAdapter().load_dem(asc_file)
    assert "NoData pixels detected" in caplog.text


def test_log_uses_file_name_only(asc_file, fake_open, caplog):
    fake_open(FakeDataset())
    caplog.set_level("INFO")
    AsciiGridElevationAdapter().load_dem(asc_file)
    assert "DEM dem.asc: Loaded 4x3 grid" in caplog.text
    assert str(asc_file.parent) not in caplog.text


def test_corrupted_file_rejected(asc_file, monkeypatch):
    import rasterio

    def fake_open(path):
        raise rasterio.errors.RasterioIOError("Corrupted data")

    monkeypatch.setattr("rasterio.open", fake_open)
    monkeypatch.setattr("rasterio.Env", lambda *a, **k: nullcontext())

    with pytest.raises(InvalidRasterError):
        AsciiGridElevationAdapter().load_dem(asc_file)


def test_path_vs_string_input(asc_file, fake_open):
    fake_open(FakeDataset())
    adapter = AsciiGridElevationAdapter()
    g1 = adapter.load_dem(asc_file)
    g2 = adapter.load_dem(str(asc_file))
    np.testing.assert_array_equal(g1.data, g2.data)
    assert g1.bounds == g2.bounds


# =============================================================================
# Integration: real ESRI ASCII grids through GDAL
# =============================================================================
@pytest.mark.integration
class TestRealAsciiGrid:
    def test_loads_values_and_nodata(self, ascii_dem):
        grid = AsciiGridElevationAdapter().load_dem(ascii_dem)

        assert grid.shape == (3, 4)
        assert grid.crs == WGS84_LONGLAT
        assert np.isnan(grid.data[0, 3])
        assert grid.data[1, 1] == 3950.0
        assert grid.valid_min() == 1200.0
        assert grid.valid_max() == 4500.0
        assert grid.source_nodata == -9999.0

    def test_georeferencing_from_header(self, ascii_dem):
        grid = AsciiGridElevationAdapter().load_dem(ascii_dem)

        assert math.isclose(grid.bounds.min_x, -75.0)
        assert math.isclose(grid.bounds.min_y, 4.0)
        assert math.isclose(grid.bounds.max_x, -74.96)
        assert math.isclose(grid.bounds.max_y, 4.03)
        assert math.isclose(grid.resolution[0], 0.01)

    def test_all_nodata_file(self, tmp_path):
        p = write_ascii_grid(tmp_path / "void.asc", [[None, None], [None, None]])
        grid = AsciiGridElevationAdapter().load_dem(p)
        assert grid.is_all_nodata()

    def test_garbage_content_rejected(self, tmp_path):
        p = tmp_path / "garbage.asc"
        p.write_text("this is not a grid\n")
        with pytest.raises(InvalidRasterError):
            AsciiGridElevationAdapter().load_dem(p)
