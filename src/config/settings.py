"""
Submission Service Configuration

Environment-driven settings for the appointment/message submission service,
loaded with python-dotenv. Two layers live here:

- Immutable domain settings (``BusinessHoursConfig``, ``FeatureFlags``,
  ``SubmissionSettings``) built once at startup and shared read-only by every
  submission.
- Flask configuration classes (Development, Testing, Production) consumed by
  the application factory in ``src.app``.

Environment variables:
    BUSINESS_TIMEZONE          IANA timezone (default Europe/Paris)
    BUSINESS_WORKING_DAYS      ISO weekdays, comma separated (default 1,2,3,4,5)
    BUSINESS_START_TIME        HH:MM (default 14:00)
    BUSINESS_END_TIME          HH:MM (default 16:30)
    APPOINTMENT_DURATION       minutes (default 30)
    RETRY_MAX_RETRIES          default 3
    RETRY_BASE_DELAY           seconds (default 1.0)
    RETRY_MAX_DELAY            seconds (default 10.0)
    RETRY_BACKOFF_MULTIPLIER   default 2.0
    ERROR_LOG_CAPACITY         default 100
    ENABLE_CALENDAR_BOOKING    true/false/1/0 (default true)
    ENABLE_EMAIL_FALLBACK      true/false/1/0 (default true)
"""

import os
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, FrozenSet, Optional, Type

from dotenv import load_dotenv

from src.business.exceptions import ConfigurationError
from src.integrations.retry import RetryConfig
from src.utils.datetime_utils import TimezoneError, get_timezone, parse_time_of_day

# Load environment variables early
load_dotenv()

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {
    1: 'Monday',
    2: 'Tuesday',
    3: 'Wednesday',
    4: 'Thursday',
    5: 'Friday',
    6: 'Saturday',
    7: 'Sunday',
}

MAX_SLOT_DURATION_MINUTES = 480


def get_env(name: str, default: Optional[str] = None) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        if default is None:
            raise ConfigurationError(
                f"Missing required environment variable: {name}",
                error_code='MISSING_ENV_VAR',
                config_key=name,
            )
        return default
    return value.strip()


def get_bool_env(name: str, default: bool) -> bool:
    """Read a boolean flag. Only true/false/1/0 are accepted."""
    value = get_env(name, str(default).lower())
    if value.lower() in ('true', '1'):
        return True
    if value.lower() in ('false', '0'):
        return False
    raise ConfigurationError(
        f"Invalid boolean value for {name}: {value}. Expected 'true', 'false', '1', or '0'.",
        error_code='INVALID_BOOLEAN',
        config_key=name,
    )


def get_int_env(name: str, default: int) -> int:
    value = get_env(name, str(default))
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid integer value for {name}: {value}",
            error_code='INVALID_INTEGER',
            config_key=name,
        ) from None


def get_float_env(name: str, default: float) -> float:
    value = get_env(name, str(default))
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid number value for {name}: {value}",
            error_code='INVALID_NUMBER',
            config_key=name,
        ) from None


@dataclass(frozen=True)
class BusinessHoursConfig:
    """
    Business hours during which appointments may be booked.

    Working days use ISO numbering (1=Monday ... 7=Sunday). The booking
    window is half-open: ``start_time <= t < end_time``.
    """

    timezone: str = 'Europe/Paris'
    working_days: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})
    start_time: str = '14:00'
    end_time: str = '16:30'
    slot_duration: int = 30

    def __post_init__(self) -> None:
        # Normalize iterables passed by callers into a frozenset
        object.__setattr__(self, 'working_days', frozenset(self.working_days))

        try:
            get_timezone(self.timezone)
        except TimezoneError:
            raise ConfigurationError(
                f"Invalid timezone: {self.timezone}",
                error_code='INVALID_TIMEZONE',
                config_key='BUSINESS_TIMEZONE',
            ) from None

        start = parse_time_of_day(self.start_time)
        if start is None:
            raise ConfigurationError(
                f"Invalid start time format: {self.start_time}. Expected HH:mm format.",
                error_code='INVALID_START_TIME',
                config_key='BUSINESS_START_TIME',
            )

        end = parse_time_of_day(self.end_time)
        if end is None:
            raise ConfigurationError(
                f"Invalid end time format: {self.end_time}. Expected HH:mm format.",
                error_code='INVALID_END_TIME',
                config_key='BUSINESS_END_TIME',
            )

        if start >= end:
            raise ConfigurationError(
                "Start time must be before end time.",
                error_code='INVALID_TIME_RANGE',
            )

        if not self.working_days or not self.working_days <= set(WEEKDAY_NAMES):
            raise ConfigurationError(
                f"Working days must be a non-empty subset of 1..7, got {sorted(self.working_days)}",
                error_code='INVALID_WORKING_DAYS',
                config_key='BUSINESS_WORKING_DAYS',
            )

        if not 0 < self.slot_duration <= MAX_SLOT_DURATION_MINUTES:
            raise ConfigurationError(
                f"Appointment duration must be between 1 and {MAX_SLOT_DURATION_MINUTES} minutes.",
                error_code='INVALID_DURATION',
                config_key='APPOINTMENT_DURATION',
            )

    @property
    def tzinfo(self) -> tzinfo:
        return get_timezone(self.timezone)

    @property
    def start_minutes(self) -> int:
        return parse_time_of_day(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_of_day(self.end_time)

    @property
    def working_day_names(self) -> list:
        return [WEEKDAY_NAMES[day] for day in sorted(self.working_days)]

    @classmethod
    def from_env(cls) -> 'BusinessHoursConfig':
        raw_days = get_env('BUSINESS_WORKING_DAYS', '1,2,3,4,5')
        try:
            working_days = frozenset(int(part) for part in raw_days.split(',') if part.strip())
        except ValueError:
            raise ConfigurationError(
                f"Invalid working days: {raw_days}",
                error_code='INVALID_WORKING_DAYS',
                config_key='BUSINESS_WORKING_DAYS',
            ) from None

        return cls(
            timezone=get_env('BUSINESS_TIMEZONE', 'Europe/Paris'),
            working_days=working_days,
            start_time=get_env('BUSINESS_START_TIME', '14:00'),
            end_time=get_env('BUSINESS_END_TIME', '16:30'),
            slot_duration=get_int_env('APPOINTMENT_DURATION', 30),
        )


@dataclass(frozen=True)
class FeatureFlags:
    """Operator switches for the two delivery paths."""

    calendar_booking: bool = True
    email_fallback: bool = True

    @classmethod
    def from_env(cls) -> 'FeatureFlags':
        return cls(
            calendar_booking=get_bool_env('ENABLE_CALENDAR_BOOKING', True),
            email_fallback=get_bool_env('ENABLE_EMAIL_FALLBACK', True),
        )


def retry_config_from_env() -> RetryConfig:
    try:
        return RetryConfig(
            max_retries=get_int_env('RETRY_MAX_RETRIES', 3),
            base_delay=get_float_env('RETRY_BASE_DELAY', 1.0),
            max_delay=get_float_env('RETRY_MAX_DELAY', 10.0),
            backoff_multiplier=get_float_env('RETRY_BACKOFF_MULTIPLIER', 2.0),
        )
    except ValueError as e:
        raise ConfigurationError(str(e), error_code='INVALID_RETRY_CONFIG') from e


@dataclass(frozen=True)
class SubmissionSettings:
    """Everything the submission pipeline needs, built once at startup."""

    business_hours: BusinessHoursConfig = field(default_factory=BusinessHoursConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    features: FeatureFlags = field(default_factory=FeatureFlags)
    error_log_capacity: int = 100

    def __post_init__(self) -> None:
        if self.error_log_capacity <= 0:
            raise ConfigurationError(
                "Error log capacity must be positive.",
                error_code='INVALID_ERROR_LOG_CAPACITY',
                config_key='ERROR_LOG_CAPACITY',
            )

    @classmethod
    def from_env(cls) -> 'SubmissionSettings':
        settings = cls(
            business_hours=BusinessHoursConfig.from_env(),
            retry=retry_config_from_env(),
            features=FeatureFlags.from_env(),
            error_log_capacity=get_int_env('ERROR_LOG_CAPACITY', 100),
        )
        logger.info(
            "Submission settings loaded: timezone=%s window=%s-%s days=%s calendar=%s fallback=%s",
            settings.business_hours.timezone,
            settings.business_hours.start_time,
            settings.business_hours.end_time,
            sorted(settings.business_hours.working_days),
            settings.features.calendar_booking,
            settings.features.email_fallback,
        )
        return settings


class BaseConfig:
    """
    Base Flask configuration shared by all environments.
    """

    APP_NAME = os.getenv('APP_NAME', 'contact-submission-service')
    APP_VERSION = os.getenv('APP_VERSION', '1.0.0')

    TESTING = False
    DEBUG = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')

    # Contact endpoints
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', '65536'))
    CONTACT_RATE_LIMIT = os.getenv('CONTACT_RATE_LIMIT', '5 per minute; 30 per hour')
    CORS_ORIGINS = [origin.strip() for origin in os.getenv('CORS_ORIGINS', '*').split(',')]

    # Flask-Limiter
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    @classmethod
    def get_environment_name(cls) -> str:
        return 'base'


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'console')

    @classmethod
    def get_environment_name(cls) -> str:
        return 'development'


class TestingConfig(BaseConfig):
    TESTING = True
    LOG_LEVEL = 'WARNING'
    LOG_FORMAT = 'console'
    RATELIMIT_ENABLED = False

    @classmethod
    def get_environment_name(cls) -> str:
        return 'testing'


class ProductionConfig(BaseConfig):
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING').upper()
    LOG_FORMAT = 'json'

    @classmethod
    def get_environment_name(cls) -> str:
        return 'production'


CONFIG_BY_ENVIRONMENT: Dict[str, Type[BaseConfig]] = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(environment: Optional[str] = None) -> Type[BaseConfig]:
    """
    Resolve the Flask configuration class for an environment.

    Args:
        environment: Environment name, defaults to FLASK_ENV (then 'development')

    Raises:
        ConfigurationError: For an unknown environment name
    """
    environment = (environment or os.getenv('FLASK_ENV', 'development')).lower()
    try:
        return CONFIG_BY_ENVIRONMENT[environment]
    except KeyError:
        raise ConfigurationError(
            f"Unknown configuration environment: {environment}",
            error_code='UNKNOWN_ENVIRONMENT',
            config_key='FLASK_ENV',
        ) from None
