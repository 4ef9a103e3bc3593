"""
Tests for the mesh-volume command line entry point.

Tests:
- Text and JSON output
- Exit codes
- Watertight report
- Configuration and argument precedence
"""

import json

import pytest

from mesh_volume.cli import format_text, main
from mesh_volume.engine import VolumeResult
from mesh_volume.errors import TruncatedFileError
from mesh_volume.project_config import CONFIG_FILENAME

from conftest import ascii_stl_bytes


@pytest.fixture
def cube_file(tmp_path, unit_cube):
    path = tmp_path / "cube.stl"
    path.write_bytes(ascii_stl_bytes(unit_cube, "cube"))
    return path


class TestMain:
    """Tests for main()."""

    def test_text_output(self, cube_file, capsys):
        """Test human-readable output and exit code 0."""
        assert main([str(cube_file)]) == 0

        out = capsys.readouterr().out
        assert "Format:       ascii" in out
        assert "Solid name:   cube" in out
        assert "Volume:       1.000" in out
        assert "Dimensions:   1.000 x 1.000 x 1.000" in out

    def test_json_output(self, cube_file, capsys):
        """Test --json output."""
        assert main([str(cube_file), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data['success'] is True
        assert data['volume'] == pytest.approx(1.0)
        assert data['vertex_count'] == 8
        assert 'validation' not in data

    def test_rejected_file(self, tmp_path, capsys):
        """Test exit code 1 and error line for a rejected file."""
        path = tmp_path / "empty.stl"
        path.write_bytes(b"solid x\nendsolid x\n")

        assert main([str(path)]) == 1
        assert "ERROR [empty_mesh]" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        """Test exit code 2 when the file cannot be read."""
        assert main([str(tmp_path / "missing.stl")]) == 2

    def test_max_bytes(self, cube_file, capsys):
        """Test --max-bytes rejects the file before reading it."""
        assert main([str(cube_file), "--max-bytes", "100", "--json"]) == 1

        data = json.loads(capsys.readouterr().out)
        assert data['error']['kind'] == "input_too_large"
        assert data['error']['details']['limit'] == 100

    def test_invalid_tolerance(self, cube_file, capsys):
        """Test exit code 2 for a non-positive tolerance."""
        assert main([str(cube_file), "--tolerance", "0"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_validate_json(self, cube_file, capsys):
        """Test --validate adds a watertight report."""
        assert main([str(cube_file), "--json", "--validate"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data['validation']['is_watertight'] is True
        assert data['validation']['n_edges'] == 18

    def test_validate_open_mesh(self, tmp_path, unit_cube, capsys):
        """Test that an open mesh still gets a volume plus a failing report."""
        path = tmp_path / "open.stl"
        path.write_bytes(ascii_stl_bytes(unit_cube[:-2], "open"))

        assert main([str(path), "--validate"]) == 0

        out = capsys.readouterr().out
        assert "Volume:" in out
        assert "Watertight:           No" in out

    def test_config_file_next_to_stl(self, cube_file, capsys):
        """Test that .meshvol.json next to the file is applied."""
        (cube_file.parent / CONFIG_FILENAME).write_text(
            json.dumps({'output': {'format': 'json'}}))

        assert main([str(cube_file)]) == 0
        assert json.loads(capsys.readouterr().out)['success'] is True

    def test_explicit_config_decimals(self, cube_file, tmp_path, capsys):
        """Test --config with custom display precision."""
        config = tmp_path / "custom.json"
        config.write_text(json.dumps({'output': {'decimals': 5}}))

        assert main([str(cube_file), "--config", str(config)]) == 0
        assert "Volume:       1.00000" in capsys.readouterr().out

    def test_log_json(self, cube_file, tmp_path):
        """Test --log-json writes JSON lines tagged with the file."""
        log_path = tmp_path / "run.log.json"

        assert main([str(cube_file), "--log-json", str(log_path)]) == 0

        records = [json.loads(line) for line in log_path.read_text(encoding='utf-8').splitlines()]
        assert any(r['message'].startswith("Volume") for r in records)
        assert all(r['file'] == str(cube_file) for r in records)


class TestFormatText:
    """Tests for format_text."""

    def test_failure(self):
        """Test the failure line."""
        result = VolumeResult(success=False, error=TruncatedFileError(5084, 584, 100))
        assert format_text(result) == (
            "ERROR [truncated_file]: Truncated binary STL: expected 5084 bytes, got 584"
        )
