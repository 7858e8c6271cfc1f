"""Tests for typed configuration loading."""

from pathlib import Path

import pytest

from basinstats.core.config import BasinStatsConfig, ExecutionConfig, GrassConfig
from basinstats.core.exceptions import ConfigurationError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "basinstats.yaml"
    path.write_text(
        "GRASS_GISDBASE: /data/grassdata\n"
        "GRASS_LOCATION: utm17n\n"
        "NUM_PROCESSES: 4\n"
        "EXECUTION_STRATEGY: threads\n"
        "log_level: debug\n"
        "UNRELATED_KEY: ignored\n",
        encoding="utf-8",
    )
    return path


class TestDefaults:

    def test_defaults(self):
        config = BasinStatsConfig()
        assert config.grass.executable == "grass"
        assert config.grass.mapset == "PERMANENT"
        assert config.grass.direction_raster == "dir@PERMANENT"
        assert config.execution.num_processes == 1
        assert config.execution.strategy == "auto"
        assert config.execution.label_prefix == "basin_"
        assert config.logging.log_level == "INFO"

    def test_mapset_path_requires_database_and_location(self):
        assert GrassConfig().mapset_path is None
        config = GrassConfig(GRASS_GISDBASE="/data/grassdata", GRASS_LOCATION="utm17n", GRASS_MAPSET="basins")
        assert config.mapset_path == Path("/data/grassdata/utm17n/basins")

    def test_gisdbase_expands_user(self):
        config = GrassConfig(GRASS_GISDBASE="~/grassdata")
        assert "~" not in str(config.gisdbase)

    def test_models_are_frozen(self):
        config = ExecutionConfig()
        with pytest.raises(Exception):
            config.num_processes = 8


class TestFromFile:

    def test_loads_flat_yaml(self, config_file):
        config = BasinStatsConfig.from_file(config_file)
        assert config.grass.location == "utm17n"
        assert config.execution.num_processes == 4
        assert config.execution.strategy == "threads"
        assert config.logging.log_level == "DEBUG"

    def test_overrides_take_precedence(self, config_file):
        config = BasinStatsConfig.from_file(config_file, overrides={"NUM_PROCESSES": 2, "GRASS_MAPSET": None})
        assert config.execution.num_processes == 2
        assert config.grass.mapset == "PERMANENT"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            BasinStatsConfig.from_file(tmp_path / "absent.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            BasinStatsConfig.from_file(path)

    def test_unparsable_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("NUM_PROCESSES: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            BasinStatsConfig.from_file(path)

    @pytest.mark.parametrize("values", [
        {"NUM_PROCESSES": 0},
        {"JOB_TIMEOUT": -5},
        {"EXECUTION_STRATEGY": "mpi"},
        {"LOG_LEVEL": "LOUD"},
    ])
    def test_invalid_values_raise_configuration_error(self, values):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            BasinStatsConfig.from_flat(values)


class TestOverrides:

    def test_with_overrides_returns_new_config(self):
        base = BasinStatsConfig()
        updated = base.with_overrides({"NUM_PROCESSES": 6, "GRASS_LOCATION": None})
        assert updated.execution.num_processes == 6
        assert base.execution.num_processes == 1
        assert updated.grass.location is None

    def test_to_flat_uses_file_keys(self):
        flat = BasinStatsConfig().to_flat()
        assert flat["NUM_PROCESSES"] == 1
        assert flat["FLOW_DIRECTION_RASTER"] == "dir@PERMANENT"
        assert "LOG_LEVEL" in flat
