# settings come from the environment, optionally seeded from a local .env file
# this is also where the provider list gets assembled, once, at start-up

from __future__ import annotations
import logging
from typing import Annotated, Any, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .client import HTTPProvider, OpenWeatherMap, WeatherUnderground
from .errors import ConfigurationError
from .service import MultiWeatherProvider

load_dotenv()  # in production, environment variables are injected by the container or the host

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

PROVIDER_NAMES = (OpenWeatherMap.name, WeatherUnderground.name)

# the names uvicorn understands too, plus the stdlib aliases folded onto them
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


class Settings(BaseSettings):
    """Service configuration, read from WEATHER_* and provider credential variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    providers: Annotated[Tuple[str, ...], NoDecode] = Field(PROVIDER_NAMES, alias="WEATHER_PROVIDERS")
    openweathermap_appid: Optional[str] = Field(None, alias="OPENWEATHERMAP_APPID")
    openweathermap_base_url: str = Field(OpenWeatherMap.BASE_URL, alias="OPENWEATHERMAP_BASE_URL")
    wunderground_api_key: Optional[str] = Field(None, alias="WUNDERGROUND_API_KEY")
    wunderground_base_url: str = Field(WeatherUnderground.BASE_URL, alias="WUNDERGROUND_BASE_URL")
    timeout: float = Field(HTTPProvider.DEFAULT_TIMEOUT, gt=0, alias="WEATHER_TIMEOUT")
    continue_on_failure: bool = Field(False, alias="WEATHER_CONTINUE_ON_FAILURE")
    host: str = Field("0.0.0.0", alias="WEATHER_HOST")
    port: int = Field(8080, ge=1, le=65535, alias="WEATHER_PORT")
    log_level: str = Field("INFO", alias="WEATHER_LOG_LEVEL")

    @field_validator("providers", mode="before")
    @classmethod
    def split_providers(cls, value: Any) -> Any:
        # "openweathermap, wunderground" -> ("openweathermap", "wunderground")
        if isinstance(value, str):
            value = [p.strip().lower() for p in value.split(",") if p.strip()]
        return value

    @field_validator("providers")
    @classmethod
    def check_providers(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("must name at least one provider")
        unknown = [p for p in value if p not in PROVIDER_NAMES]
        if unknown:
            raise ValueError(
                f"unknown weather provider(s) {', '.join(unknown)}; expected any of {', '.join(PROVIDER_NAMES)}"
            )
        return value

    @field_validator("openweathermap_appid", "wunderground_api_key", mode="before")
    @classmethod
    def blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        level = value.strip().upper()
        level = _LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)} (got {value!r})")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        # an explicit mapping is validated on its own; otherwise the process env and .env are read
        try:
            if environ is None:
                return cls()
            return cls.model_validate(dict(environ))
        except ValidationError as exc:
            problems = "; ".join(f"{cls._variable(err['loc'])}: {err['msg']}" for err in exc.errors())
            raise ConfigurationError(f"invalid settings: {problems}") from exc

    @classmethod
    def _variable(cls, loc: Tuple[Any, ...]) -> str:
        # report the environment variable, not the attribute name
        field = cls.model_fields.get(str(loc[0])) if loc else None
        if field is not None and field.alias:
            return field.alias
        return ".".join(str(part) for part in loc)


def build_provider(name: str, settings: Settings) -> HTTPProvider:
    if name == OpenWeatherMap.name:
        return OpenWeatherMap(
            appid=settings.openweathermap_appid or "",
            base_url=settings.openweathermap_base_url,
            timeout=settings.timeout,
        )
    if name == WeatherUnderground.name:
        return WeatherUnderground(
            api_key=settings.wunderground_api_key or "",
            base_url=settings.wunderground_base_url,
            timeout=settings.timeout,
        )
    raise ConfigurationError(f"unknown weather provider {name!r}")


def build_aggregator(settings: Settings) -> MultiWeatherProvider:
    # order in WEATHER_PROVIDERS is the order providers are queried in
    return MultiWeatherProvider(
        (build_provider(name, settings) for name in settings.providers),
        continue_on_failure=settings.continue_on_failure,
    )


def configure_logging(level: str = "INFO") -> None:
    name = _LOG_LEVEL_ALIASES.get(level.upper(), level.upper())
    if name not in LOG_LEVELS:
        raise ConfigurationError(f"WEATHER_LOG_LEVEL is not a logging level (got {level!r})")
    logging.basicConfig(level=name, format=LOG_FORMAT, force=True)
