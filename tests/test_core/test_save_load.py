import json
import tempfile
from pathlib import Path

import numpy as np
import pytest

from reserveopt import (
    InvalidLockSet,
    MaxCoverModel,
    ModelConstructionError,
    Raster,
    ReserveModel,
    TargetModel,
    maxcover_model,
    prioritizr_model,
)


@pytest.fixture
def maxcover(cost_raster_na: Raster, feature_raster: Raster) -> MaxCoverModel:
    return maxcover_model(
        cost_raster_na,
        feature_raster,
        budget=500.0,
        locked_in=[1, 12],
        locked_out=[25],
    )


def test_save_creates_file(maxcover: MaxCoverModel):
    """Test that save writes a single JSON file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        maxcover.save(path)

        # Should create the JSON file
        assert path.with_suffix(".json").exists()


def test_maxcover_round_trip(maxcover: MaxCoverModel):
    """Test that load restores every part of a maximum coverage model."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        maxcover.save(path)
        loaded = MaxCoverModel.load(path)

    np.testing.assert_array_equal(loaded.cost, maxcover.cost)
    np.testing.assert_array_equal(loaded.rij.toarray(), maxcover.rij.toarray())
    np.testing.assert_array_equal(loaded.locked_in, maxcover.locked_in)
    np.testing.assert_array_equal(loaded.locked_out, maxcover.locked_out)
    np.testing.assert_array_equal(loaded.included, maxcover.included)
    assert loaded.budget == maxcover.budget


def test_maxcover_round_trip_all_included(cost_raster: Raster, feature_raster: Raster):
    model = maxcover_model(cost_raster, feature_raster, budget=500.0)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        model.save(path)
        loaded = MaxCoverModel.load(path)

    # Should keep the all-included marker rather than a mask
    assert loaded.included is True


def test_target_round_trip(cost_raster: Raster, feature_raster: Raster):
    model = prioritizr_model(
        cost_raster,
        feature_raster,
        targets=[0.1, 0.2, 0.3, 0.4],
        locked_in=[3],
    )

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        model.save(path)
        loaded = TargetModel.load(path)

    np.testing.assert_allclose(loaded.targets, model.targets)
    np.testing.assert_array_equal(loaded.rij.toarray(), model.rij.toarray())
    assert loaded.locked_in.tolist() == [3]


def test_base_class_load_returns_saved_kind(
    maxcover: MaxCoverModel,
    cost_raster: Raster,
    feature_raster: Raster,
):
    """Test that ReserveModel.load restores whichever model was saved."""
    target = prioritizr_model(cost_raster, feature_raster, targets=0.2)

    with tempfile.TemporaryDirectory() as tmpdir:
        maxcover.save(Path(tmpdir) / "maxcover")
        target.save(Path(tmpdir) / "target")
        loaded_maxcover = ReserveModel.load(Path(tmpdir) / "maxcover")
        loaded_target = ReserveModel.load(Path(tmpdir) / "target")

    assert isinstance(loaded_maxcover, MaxCoverModel)
    assert isinstance(loaded_target, TargetModel)
    np.testing.assert_allclose(loaded_target.targets, target.targets)


def test_base_class_load_unknown_kind(maxcover: MaxCoverModel):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        maxcover.save(path)

        json_path = path.with_suffix(".json")
        config = json.loads(json_path.read_text())
        config["kind"] = "zonation"
        json_path.write_text(json.dumps(config))

        with pytest.raises(ModelConstructionError, match="zonation"):
            ReserveModel.load(path)


def test_base_class_cannot_be_built(maxcover: MaxCoverModel):
    with pytest.raises(TypeError):
        ReserveModel(
            cost=maxcover.cost,
            rij=maxcover.rij,
            locked_in=maxcover.locked_in,
            locked_out=maxcover.locked_out,
        )


def test_loaded_model_is_read_only(maxcover: MaxCoverModel):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        maxcover.save(path)
        loaded = MaxCoverModel.load(path)

    with pytest.raises(ValueError, match="read-only"):
        loaded.cost[0] = 0.0


def test_load_rechecks_locks(maxcover: MaxCoverModel):
    """Test that a tampered file goes through the usual checks."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test_model"
        maxcover.save(path)

        json_path = path.with_suffix(".json")
        config = json.loads(json_path.read_text())
        config["locked_out"] = config["locked_in"]
        json_path.write_text(json.dumps(config))

        # Should reject the overlapping locks
        with pytest.raises(InvalidLockSet):
            MaxCoverModel.load(path)


def test_load_missing_file():
    """Test that loading a missing file raises FileNotFoundError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nonexistent"

        with pytest.raises(FileNotFoundError, match="JSON model file not found"):
            MaxCoverModel.load(path)
