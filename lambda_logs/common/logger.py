import os
import logging
import json

from lambda_logs.resolver import LOG_FORMAT_ENV, APPLICATION_LEVEL_ENV

# Python has no TRACE/FATAL levels; map them onto the nearest ones
_LEVEL_ALIASES = {
    'TRACE': 'DEBUG',
    'WARN': 'WARNING',
    'FATAL': 'CRITICAL',
}


def to_logging_level(level):
    """Convert a Lambda log level name (TRACE..FATAL) into a logging constant."""
    name = str(level).upper()
    name = _LEVEL_ALIASES.get(name, name)
    numeric_level = getattr(logging, name, None)
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(level=None, log_format=None):
    """
    Set up logging for function code from the settings injected at deploy time.

    Args:
        level: Optional log level override (default: LOG_LEVEL env var or INFO)
        log_format: Optional 'json' or 'text' override (default: AWS_LAMBDA_HANDLER_LOG_FORMAT env var or text)
    """
    if level is None:
        level = os.environ.get(APPLICATION_LEVEL_ENV, 'INFO')
    if log_format is None:
        log_format = os.environ.get(LOG_FORMAT_ENV, 'text')

    numeric_level = to_logging_level(level)

    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    if str(log_format).lower() == 'json':
        for handler in root_logger.handlers:
            handler.setFormatter(JsonFormatter())

    # Silence noisy loggers
    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logging.debug("Logging initialized")


class JsonFormatter(logging.Formatter):
    """
    Format logs as JSON so CloudWatch can parse them when LogFormat is JSON.
    """

    _RESERVED = {
        'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
        'funcName', 'id', 'levelname', 'levelno', 'lineno', 'module',
        'msecs', 'message', 'msg', 'name', 'pathname', 'process',
        'processName', 'relativeCreated', 'stack_info', 'thread', 'threadName',
        'taskName'
    }

    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        # Extra fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in log_record:
                log_record[key] = value

        return json.dumps(log_record, default=str)
