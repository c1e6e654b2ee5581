"""Shared logging configuration."""
import os
import sys
import traceback
from aws_lambda_powertools import Logger

SERVICE_NAME = os.environ.get('POWERTOOLS_SERVICE_NAME', 'cycle_engine')

def format_exception(exc_info):
    """Format exception info into a single line, None if there is no exception."""
    if exc_info is True:
        exc_info = sys.exc_info()
    if not exc_info or not isinstance(exc_info, tuple) or exc_info[0] is None:
        return None
    trace = ''.join(traceback.format_exception(*exc_info))
    return trace.replace('\n', ' | ').strip()

class SingleLineLogger(Logger):
    """Logger that keeps tracebacks on one line so each log record stays one entry."""

    def exception(self, message, *args, **kwargs):
        """Log an error with the current traceback folded into the 'exception' key."""
        extra = kwargs.pop('extra', None) or {}
        extra['exception'] = format_exception(kwargs.pop('exc_info', True))
        kwargs['exc_info'] = False
        super().exception(message, *args, extra=extra, **kwargs)

logger = SingleLineLogger(
    service=SERVICE_NAME,
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    use_rfc3339=True
)

# Base logging context
logger.append_keys(
    region=os.environ.get('AWS_REGION'),
    table=os.environ.get('TRACKER_TABLE_NAME')
)
