"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Dict, Iterable

from .errors import NotAVersionControlledDirectory
from .exit_codes import (
    SUCCESS, INTERRUPTED, NOT_A_REPOSITORY,
    get_exit_code_for_exception, CommandError
)


def emit_json(item: Dict[str, Any], pretty: bool = False) -> None:
    """Write one JSON document to stdout."""
    click.echo(json.dumps(item, ensure_ascii=False, indent=2 if pretty else None))


def emit_jsonl(items: Iterable[Dict[str, Any]]) -> None:
    """Stream one JSON object per line to stdout."""
    for item in items:
        click.echo(json.dumps(item, ensure_ascii=False))


def warn(message: str) -> None:
    """Write a warning line to stderr."""
    click.echo(f"warning: {message}", err=True)


def _error_object(e: BaseException, exit_code: int) -> Dict[str, Any]:
    return {
        "error": str(e),
        "type": type(e).__name__,
        "exit_code": exit_code,
    }


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Data on stdout, diagnostics on stderr
    - Errors reported as a JSON object on stdout
    - Exit codes from gitportfolio.exit_codes
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
            sys.exit(SUCCESS)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            emit_json(_error_object(e, e.exit_code))
            sys.exit(e.exit_code)
        except NotAVersionControlledDirectory as e:
            click.echo(f"Error: {e}", err=True)
            emit_json(_error_object(e, NOT_A_REPOSITORY))
            sys.exit(NOT_A_REPOSITORY)
        except Exception as e:
            code = get_exit_code_for_exception(e)
            click.echo(f"Command failed: {e}", err=True)
            emit_json(_error_object(e, code))
            sys.exit(code)

    return wrapper
