"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import os
import sys
import click
from functools import wraps

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)

logger = logging.getLogger(__name__)


def _in_actions() -> bool:
    return os.environ.get('GITHUB_ACTIONS') == 'true'


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - A command returning a dict prints it as JSON when --json is set
    - CommandError exits with its own exit code
    - Other exceptions map through get_exit_code_for_exception
    - Errors become ::error:: annotations under GitHub Actions
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        as_json = kwargs.get('as_json', False)
        try:
            result = func(*args, **kwargs)
            if as_json and result is not None:
                print(json.dumps(result, ensure_ascii=False, default=str), flush=True)
            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            _report_error(e, as_json)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            _report_error(e, as_json)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def _report_error(exc: Exception, as_json: bool) -> None:
    if _in_actions():
        # Workflow commands take a single line
        click.echo(f"::error::{str(exc).splitlines()[0] if str(exc) else type(exc).__name__}", err=True)
    click.echo(f"Error: {exc}", err=True)
    if as_json:
        error_obj = {
            "error": str(exc),
            "type": type(exc).__name__,
            "exit_code": get_exit_code_for_exception(exc),
        }
        print(json.dumps(error_obj, ensure_ascii=False), flush=True)
