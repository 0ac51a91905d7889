import json
import logging
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog

from src.core.config import settings

MASK = 'SENSITIVE DATA'

_configured = False


def setup_logging(level: int | str) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.LOG_TO_FILE:
        handlers.append(
            RotatingFileHandler(
                settings.LOGS_DIR / f'{settings.APP_NAME}.log',
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding='utf-8',
            )
        )

    for handler in handlers:
        handler.setLevel(level)

    logging.basicConfig(
        format='%(message)s',
        handlers=handlers,
        level=level,
    )


def configure_structlog(level: int | str = settings.LOG_LEVEL) -> None:
    """Configure stdlib handlers and the structlog pipeline once per process"""
    global _configured  # noqa: PLW0603
    if _configured:
        return

    setup_logging(level)
    render_method = structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt=settings.LOG_DATE_FORMAT, utc=True),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            mask_sensitive_data,
            render_method,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    configure_structlog()
    return structlog.get_logger(name)


def _parse_query(value: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for param in value.split('&'):
        if not param:
            continue
        # Split only on the first "=", values may contain "="
        name, _, param_value = param.partition('=')
        params[name] = param_value
    return params


def _mask_data(data: Any) -> Any:
    if isinstance(data, list):
        return [_mask_data(item) for item in data]

    if not isinstance(data, dict):
        return data

    result = {}
    for key, value in data.items():
        if isinstance(key, str) and key.lower() in {k.lower() for k in settings.LOG_SENSITIVE_DATA}:
            result[key] = MASK
        elif isinstance(value, dict | list):
            result[key] = _mask_data(value)
        elif isinstance(value, str) and value.strip()[:1] in ('{', '['):
            try:
                result[key] = json.dumps(_mask_data(json.loads(value)), ensure_ascii=False)
            except json.JSONDecodeError:
                result[key] = value
        elif isinstance(value, str) and key == 'query':
            result[key] = _mask_data(_parse_query(value)) if value else value
        else:
            result[key] = value
    return result


def mask_sensitive_data(  # noqa
    logger: structlog.BoundLogger, _method_name: str, event_dict: dict[str, Any]
) -> Any:
    """Recursively mask sensitive keys inside the `context` payload"""
    if 'context' in event_dict:
        event_dict['context'] = _mask_data(event_dict['context'])

    return event_dict
