import logging.config
import multiprocessing
import os
import re

import structlog


bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
wsgi_app = "config.wsgi:application"

# 2n+1 sync workers, capped; override with GUNICORN_WORKERS
max_workers = int(os.environ.get("GUNICORN_MAX_WORKERS", "10"))
workers = int(os.environ.get("GUNICORN_WORKERS", "0")) or min(multiprocessing.cpu_count() * 2 + 1, max_workers)
worker_class = "sync"
preload_app = True

timeout = 60
keepalive = 5
graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 50

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
errorlog = "-"
accesslog = "-"

# 10.0.0.1 - - [19/Oct/2026:09:30:00 +0000] "GET /api/verify-card?agent_id=x HTTP/1.1" 200 512 "-" "curl/8.0" host="cards.example.org" rid="3f0c..."
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" host="%({Host}i)s" rid="%({X-Request-Id}i)s"'
)

ACCESS_LINE = re.compile(
    r"\s+".join(
        [
            r"(?P<remote>\S+)",
            r"\S+",
            r"(?P<user>\S+)",
            r"\[(?P<time>.+)\]",
            r'"(?P<request>.+)"',
            r"(?P<status>[0-9]+)",
            r"(?P<size>\S+)",
            r'"(?P<referer>.*)"',
            r'"(?P<agent>.*)"',
            r'host="(?P<host_header>.*)"',
            r'rid="(?P<request_id>.*)"',
        ]
    )
    + r"\s*\Z"
)

PUBLIC_PATHS = ("/api/verify-card",)


def _dash_to_none(value):
    return None if value in ("-", "") else value


def access_line_fields(logger, name, event_dict):
    """Split gunicorn access lines into structured fields; unknown shapes pass through."""
    if event_dict.get("logger") != "gunicorn.access":
        return event_dict

    m = ACCESS_LINE.match(event_dict.get("event", "") or "")
    if not m:
        return event_dict

    res = m.groupdict()
    res["user"] = _dash_to_none(res.get("user"))
    res["referer"] = _dash_to_none(res.get("referer"))
    res["request_id"] = _dash_to_none(res.get("request_id"))
    try:
        res["status"] = int(res["status"])
    except (TypeError, ValueError):
        pass
    try:
        res["size"] = int(res["size"])
    except (TypeError, ValueError):
        res["size"] = 0
    event_dict.update(res)

    parts = res.get("request", "").split(" ")
    if len(parts) == 3:
        event_dict["method"], event_dict["path"], event_dict["version"] = parts
        event_dict["public"] = event_dict["path"].startswith(PUBLIC_PATHS)
    else:
        event_dict["request_raw"] = res.get("request", "")
    return event_dict


def gunicorn_event_name(logger, name, event_dict):
    logger_name = event_dict.get("logger")
    raw_event = event_dict.get("event")
    if logger_name not in ("gunicorn.error", "gunicorn.access") or not isinstance(raw_event, str):
        return event_dict

    if logger_name == "gunicorn.access":
        event_dict["event"] = "gunicorn.request_handling"
        return event_dict

    event = raw_event.lower()
    event_dict["message"] = event
    if event.startswith(("starting", "listening", "using", "booting")):
        event_dict["event"] = "gunicorn.booting"
    elif event.startswith("handling signal"):
        event_dict["event"] = "gunicorn.signal_handling"
    return event_dict


timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    timestamper,
    access_line_fields,
    gunicorn_event_name,
]


def _logger(level="INFO"):
    return {"level": level, "handlers": ["default"], "propagate": False}


logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {"level": "INFO", "handlers": ["default"]},
    "loggers": {
        "gunicorn.error": _logger(),
        "gunicorn.access": _logger(),
        "django_structlog": _logger(),
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "logfmt_formatter",
        },
    },
    "formatters": {
        "logfmt_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": pre_chain,
        }
    },
}

logging.config.dictConfig(logconfig_dict)
