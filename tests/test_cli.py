"""Tests for the command-line entry point."""

from pathlib import Path

import pytest
import structlog

from terragen.cli import main
from terragen.persistence import load_result


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the CLI's global structlog configuration."""
    yield
    structlog.reset_defaults()


class TestMain:
    """Tests for ``terragen`` invocations."""

    def test_generates_file(self, tmp_path: Path) -> None:
        """A run writes a loadable result with the overrides applied."""
        output = tmp_path / "out.npz"
        code = main(["--config", "small", "--resolution", "16", "--seed", "3", "-o", str(output)])

        assert code == 0
        result, metadata = load_result(output)
        assert result.config.resolution == 16
        assert metadata["seed"] == 3

    def test_suffix_forced(self, tmp_path: Path) -> None:
        """Outputs always end in .npz."""
        code = main(["--config", "small", "--resolution", "8", "-o", str(tmp_path / "terrain")])
        assert code == 0
        assert (tmp_path / "terrain.npz").exists()

    def test_unknown_config(self, tmp_path: Path) -> None:
        """An unknown config name exits with status 2."""
        assert main(["--config", "no_such_config", "-o", str(tmp_path / "x.npz")]) == 2

    def test_invalid_override(self, tmp_path: Path) -> None:
        """An invalid override exits with status 2."""
        code = main(["--config", "small", "--resolution", "0", "-o", str(tmp_path / "x.npz")])
        assert code == 2
        assert not (tmp_path / "x.npz").exists()
