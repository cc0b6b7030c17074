import functools
import sys

import click

FAILURE_EXIT_CODE = 1


def exit_on_failure(func):
    """
    Runs a deployment command, reporting any error on stderr and
    terminating the process with a non-zero exit code.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise  # click reports these itself
        except Exception as error:
            click.echo(f"{type(error).__name__}: {error}", err=True)
            sys.exit(FAILURE_EXIT_CODE)

    return wrapper
