import click
import pytest

from deployment.runner import FAILURE_EXIT_CODE, exit_on_failure


def test_success_returns_result():
    @exit_on_failure
    def command():
        return "0xabc"

    assert command() == "0xabc"


def test_error_is_reported_and_exits_non_zero(capsys):
    @exit_on_failure
    def command():
        raise RuntimeError("insufficient funds for gas")

    with pytest.raises(SystemExit) as exc_info:
        command()
    assert exc_info.value.code == FAILURE_EXIT_CODE == 1
    captured = capsys.readouterr()
    assert "RuntimeError: insufficient funds for gas" in captured.err
    assert captured.out == ""


def test_click_errors_pass_through():
    @exit_on_failure
    def command():
        raise click.BadParameter("bad value")

    with pytest.raises(click.BadParameter):
        command()


def test_explicit_exit_passes_through():
    @exit_on_failure
    def command():
        raise SystemExit(-1)

    with pytest.raises(SystemExit) as exc_info:
        command()
    assert exc_info.value.code == -1
