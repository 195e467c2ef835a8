import logging
import sys
import structlog
import pydantic
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    data_file: str = pydantic.Field(
        "polystore.txt",
        description="Path to the store's text file.",
    )
    strict_load: bool = pydantic.Field(
        False,
        description="Fail on unknown tags when loading instead of skipping them.",
    )
    log_level: str = pydantic.Field(
        "warning",
        description="Logging level.",
    )
    log_file: str = pydantic.Field(
        "STDERR",
        description="Path to the log file, or STDOUT/STDERR.",
    )
    log_format: str = pydantic.Field(
        "text",
        description="Log format.",
    )
    model_config = SettingsConfigDict(env_prefix="polystore_")

    @pydantic.field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.lower()
        if not isinstance(logging.getLevelName(value.upper()), int):
            raise ValueError(f"unknown log level {value!r}")
        return value


def load_config(**overrides) -> Config:
    # drop unset command line options so env vars still apply
    config = Config(**{k: v for k, v in overrides.items() if v is not None})
    # configure log output
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
    ]
    if config.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    if config.log_file == "STDOUT":
        factory = structlog.PrintLoggerFactory(file=sys.stdout)
    elif config.log_file == "STDERR":
        factory = structlog.PrintLoggerFactory(file=sys.stderr)
    else:
        factory = structlog.PrintLoggerFactory(file=open(config.log_file, "a"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level.upper())
        ),
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )
    return config
