"""Tests for the GRASS engine command construction and execution."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from basinstats.core.config import GrassConfig
from basinstats.core.exceptions import EngineUnavailableError
from basinstats.engine.grass import GrassEngine
from basinstats.engine.subprocess_execution import augment_conda_library_paths
from basinstats.execution.jobs import EngineContext, JobBuilder, JobPhase
from basinstats.geospatial.pour_points import PourPoint

RUN = "basinstats.engine.subprocess_execution.subprocess.run"


@pytest.fixture
def mapset(tmp_path):
    path = tmp_path / "grassdata" / "utm17n" / "PERMANENT"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def engine(mapset, mock_logger):
    config = GrassConfig(GRASS_GISDBASE=str(mapset.parent.parent), GRASS_LOCATION="utm17n")
    return GrassEngine(config, timeout=30, logger=mock_logger)


def completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


class TestCheckSession:

    def test_available(self, engine):
        with patch("basinstats.engine.grass.shutil.which", return_value="/usr/bin/grass"):
            engine.check_session()

    def test_executable_missing(self, engine):
        with patch("basinstats.engine.grass.shutil.which", return_value=None):
            with pytest.raises(EngineUnavailableError, match="not found on PATH"):
                engine.check_session()

    def test_mapset_missing(self, tmp_path, mock_logger):
        config = GrassConfig(GRASS_GISDBASE=str(tmp_path), GRASS_LOCATION="nowhere")
        with patch("basinstats.engine.grass.shutil.which", return_value="/usr/bin/grass"):
            with pytest.raises(EngineUnavailableError, match="mapset does not exist"):
                GrassEngine(config, logger=mock_logger).check_session()

    def test_session_not_configured(self, mock_logger):
        with patch("basinstats.engine.grass.shutil.which", return_value="/usr/bin/grass"):
            with pytest.raises(EngineUnavailableError, match="not configured"):
                GrassEngine(GrassConfig(), logger=mock_logger).check_session()


class TestCommands:

    def test_delineate_runs_inside_mapset(self, engine, mapset):
        with patch(RUN, return_value=completed()) as run:
            result = engine.delineate(512000.0, 4890000.5, "basin_g1")

        assert result.success
        command = run.call_args.args[0]
        assert command == [
            "grass", str(mapset), "--exec",
            "r.water.outlet", "input=dir@PERMANENT", "coordinates=512000.0,4890000.5",
            "output=basin_g1", "--overwrite", "--quiet",
        ]
        assert run.call_args.kwargs["timeout"] == 30

    def test_zonal_stats_command(self, engine, tmp_path):
        output = tmp_path / "basin_stats_g1.txt"
        with patch(RUN, return_value=completed()) as run:
            engine.zonal_stats("precip@PERMANENT", "basin_g1", output)

        command = run.call_args.args[0]
        assert command[3:] == [
            "r.univar", "-g", "--overwrite", "map=precip@PERMANENT", "zones=basin_g1",
            f"output={output}", "separator=newline",
        ]

    def test_discard_command(self, engine):
        with patch(RUN, return_value=completed()) as run:
            engine.discard("basin_run1_*")
        assert run.call_args.args[0][3:] == ["g.remove", "-f", "type=raster", "pattern=basin_run1_*"]

    def test_command_for_job(self, engine, tmp_path):
        context = EngineContext(stat_raster="elev", output_dir=tmp_path, label_prefix="basin_r_")
        job = JobBuilder().build(PourPoint("g1", 1.5, 2.5), JobPhase.SUMMARIZE, context)
        assert engine.command_for(job)[:2] == ["r.univar", "-g"]

    def test_execute_dispatches_by_phase(self, engine):
        job = JobBuilder().build(PourPoint("g1", 1.5, 2.5), JobPhase.DELINEATE, EngineContext())
        with patch(RUN, return_value=completed()) as run:
            engine.execute(job)
        assert run.call_args.args[0][3] == "r.water.outlet"

    def test_run_script(self, engine, mapset, tmp_path):
        script = tmp_path / "delineate_1.sh"
        with patch(RUN, return_value=completed()) as run:
            engine.run_script(script)
        assert run.call_args.args[0] == ["grass", str(mapset), "--exec", "sh", str(script)]


class TestFailures:

    def test_non_zero_exit_is_failed_result(self, engine):
        with patch(RUN, return_value=completed(1, "ERROR: Raster map <dir> not found")):
            result = engine.delineate(1.0, 2.0, "basin_g1")
        assert not result.success
        assert result.return_code == 1
        assert "not found" in result.error_message

    def test_timeout_is_failed_result(self, engine):
        with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="grass", timeout=30)):
            result = engine.delineate(1.0, 2.0, "basin_g1")
        assert not result.success
        assert result.return_code == -1
        assert result.error_message == "Timeout after 30s"

    def test_missing_executable_is_engine_unavailable(self, engine):
        with patch(RUN, side_effect=FileNotFoundError("grass")):
            with pytest.raises(EngineUnavailableError):
                engine.zonal_stats("elev", "basin_g1", Path("out.txt"))


class TestCondaLibraryPaths:

    def test_no_conda_prefix(self):
        env = {"PATH": "/usr/bin"}
        augment_conda_library_paths(env)
        assert env == {"PATH": "/usr/bin"}

    def test_prefix_added_once(self):
        env = {"CONDA_PREFIX": "/opt/conda"}
        augment_conda_library_paths(env)
        augment_conda_library_paths(env)
        values = [v for k, v in env.items() if k != "CONDA_PREFIX"]
        assert len(values) == 1
        assert values[0].count("/opt/conda") == 1
