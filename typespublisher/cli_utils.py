"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps

from .config import logger
from .exit_codes import SUCCESS, INTERRUPTED, get_exit_code_for_exception, CommandError


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - JSON result on stdout when the command returns a dict
    - Errors reported on stderr and as a JSON object on stdout
    - Exit codes taken from CommandError or the exception type
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
            if isinstance(result, dict):
                print(json.dumps(result, ensure_ascii=False), flush=True)
            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            logger.error(str(e))
            report = getattr(e, 'report', None)
            if report and report != str(e):
                click.echo(report, err=True)
            error_obj = {
                "error": str(e),
                "type": type(e).__name__,
                "exit_code": e.exit_code,
            }
            print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            error_obj = {
                "error": str(e),
                "type": type(e).__name__,
            }
            print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper
