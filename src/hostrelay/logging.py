import json
import logging
import os
import sys

_RESERVED_ATTRS = set(
    logging.LogRecord(None, None, None, None, '', (), None).__dict__.keys()
) | {"exc_info", "message"}


class CustomJSONFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": "hostrelay",
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        # Anything passed through `extra=`
        for key in set(record.__dict__.keys()) - _RESERVED_ATTRS:
            if key not in log_record:
                log_record[key] = record.__dict__.get(key)

        return json.dumps(log_record, default=str)


def setup_logging():
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    formatter = CustomJSONFormatter()

    logger = logging.getLogger("hostrelay")
    logger.setLevel(log_level)

    if any(isinstance(h.formatter, CustomJSONFormatter) for h in logger.handlers):
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
