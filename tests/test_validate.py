"""Tests for the validation report."""

import validate
from latticepi.engine import create_backend


class TestAuditTable:

    def test_clean_for_supported_sizes(self):
        for n in (8, 64, 512):
            assert validate.audit_table(n) == []


class TestCheckSize:

    def test_row_contents(self):
        with create_backend("thread", workers=2) as backend:
            row = validate.check_size(64, backend)
        assert row['size'] == 64
        assert row['estimate'].denominator == 63 * 63
        assert row['problems'] == []


class TestValidate:

    def test_passes_without_plots(self, capsys):
        assert validate.validate([8, 64, 512], plot=False) == 0
        assert "Validation passed" in capsys.readouterr().out

    def test_writes_figures(self, tmp_path):
        convergence = tmp_path / "convergence.png"
        lattice = tmp_path / "lattice.png"
        assert validate.main(["8", "64", "--convergence", str(convergence),
                              "--lattice", str(lattice)]) == 0
        assert convergence.stat().st_size > 0
        assert lattice.stat().st_size > 0

    def test_flags_non_converging_sizes(self, capsys):
        """Listing a size twice means the error cannot shrink."""
        assert validate.validate([64, 64], plot=False) == 1
        assert "does not shrink" in capsys.readouterr().out
