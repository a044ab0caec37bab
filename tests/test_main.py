"""Tests for the command line entry point."""

import logging
from unittest.mock import patch

import pytest

import main
from latticepi.errors import BackendError, KernelError
from latticepi.kernel import count_grid


class TestOutput:
    """Two-line stdout contract."""

    def test_n8(self, capsys):
        assert main.main(["8"]) == 0
        assert capsys.readouterr().out == "Compute done!\npi = 180/49\n"

    def test_default_size(self, capsys):
        assert main.main([]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Compute done!"
        numerator, denominator = lines[1].removeprefix("pi = ").split("/")
        assert int(denominator) == 1046529
        assert int(numerator) == 4 * count_grid(1024)
        assert abs(int(numerator) / int(denominator) - 3.14159) < 0.01

    def test_process_backend(self, capsys):
        assert main.main(["64", "--backend", "process", "--workers", "2"]) == 0
        out = capsys.readouterr().out
        assert out.endswith(f"pi = {4 * count_grid(64)}/3969\n")

    def test_non_divisible_size_warns(self, capsys, caplog):
        with caplog.at_level(logging.WARNING):
            assert main.main(["12"]) == 0
        assert "not divisible" in caplog.text
        assert capsys.readouterr().out.startswith("Compute done!\n")


class TestArgumentErrors:
    """Bad N never reaches a backend."""

    @pytest.mark.parametrize("value", ["abc", "", "3.5", "0", "-8", "7"])
    def test_rejected_without_backend(self, value, capsys):
        with patch("main.create_backend") as acquire:
            with pytest.raises(SystemExit) as excinfo:
                main.main([value])
        assert excinfo.value.code == 2
        acquire.assert_not_called()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "invalid grid size" in captured.err

    def test_unknown_backend_choice(self):
        with pytest.raises(SystemExit) as excinfo:
            main.main(["64", "--backend", "cuda"])
        assert excinfo.value.code == 2


class TestFatalErrors:
    """Backend and kernel failures give exit status 1 and no estimate."""

    def test_backend_acquisition_failure(self, capsys):
        with patch("main.create_backend", side_effect=BackendError("no device")):
            assert main.main(["64"]) == 1
        assert capsys.readouterr().out == ""

    def test_bad_worker_count(self, capsys):
        assert main.main(["64", "--workers", "0"]) == 1
        assert capsys.readouterr().out == ""

    def test_kernel_failure(self, capsys):
        with patch("main.aggregate", side_effect=KernelError("map failed")):
            assert main.main(["64"]) == 1
        assert capsys.readouterr().out == ""

    def test_run_rejects_small_size(self, capsys):
        assert main.run(4) == 2
        assert capsys.readouterr().out == ""
