"""
Centralized Configuration - Single source of truth for all settings.

All environment variables are read here, validated, and exposed through a
frozen Settings object. Other modules receive a Settings instance instead of
reading os.environ directly. A local .env file is loaded first if present.

Usage:
    from signalreach.config import Settings, validate

    settings = Settings.from_env()
    validate(settings, strict=True)
"""

import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

from signalreach.errors import ConfigError

# ─── DEFAULTS ────────────────────────────────────────────────

DEFAULT_PORT = 8080
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TIMEOUT = 30
DEFAULT_REDDIT_ACTOR = "trudax/reddit-scraper-lite"
DEFAULT_SCRAPE_MAX_ITEMS = 20
DEFAULT_SCRAPE_WAIT_SECS = 120
DEFAULT_SCRAPE_MAX_WORKERS = 4
DEFAULT_STATE_FILE = os.path.join(os.path.expanduser("~"), ".signalreach", "state.json")

LOCAL_DEV_ORIGINS = ("http://localhost:3000", "http://localhost:3001")

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_LOG_FORMATS = {"text", "json"}


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        print(f"[config] WARNING: {name}={raw!r} is not an integer, using {default}", file=sys.stderr)
        return default


@dataclass(frozen=True)
class Settings:
    # ─── API ─────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    frontend_url: str = ""

    # ─── SUPABASE ────────────────────────────────────────────
    supabase_url: str = ""
    supabase_key: str = ""

    # ─── LLM ─────────────────────────────────────────────────
    llm_api_key: str = ""
    llm_base_url: str = ""
    llm_model: str = DEFAULT_LLM_MODEL
    llm_timeout: int = DEFAULT_LLM_TIMEOUT

    # ─── SCRAPER ─────────────────────────────────────────────
    apify_token: str = ""
    reddit_actor: str = DEFAULT_REDDIT_ACTOR
    scrape_max_items: int = DEFAULT_SCRAPE_MAX_ITEMS
    scrape_wait_secs: int = DEFAULT_SCRAPE_WAIT_SECS
    scrape_max_workers: int = DEFAULT_SCRAPE_MAX_WORKERS
    scrape_dedupe: bool = True
    cron_secret: str = ""

    # ─── LOGGING ─────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"
    log_file: str = ""  # empty = stdout only

    # ─── CLIENT STATE ────────────────────────────────────────
    state_file: str = DEFAULT_STATE_FILE
    access_token: str = ""  # CLI only: the signed-in user's access token

    extra_origins: tuple = field(default=LOCAL_DEV_ORIGINS)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from the process environment (and .env if present)."""
        if dotenv:
            load_dotenv()
        llm_key = (
            os.environ.get("LLM_API_KEY")
            or os.environ.get("OPENAI_API_KEY")
            or os.environ.get("GEMINI_API_KEY")
            or ""
        )
        return cls(
            api_host=os.environ.get("API_HOST", "0.0.0.0"),
            port=_env_int("PORT", DEFAULT_PORT),
            frontend_url=os.environ.get("FRONTEND_URL", "").rstrip("/"),
            supabase_url=os.environ.get("SUPABASE_URL", ""),
            supabase_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
            llm_api_key=llm_key,
            llm_base_url=os.environ.get("LLM_BASE_URL", ""),
            llm_model=os.environ.get("LLM_MODEL", DEFAULT_LLM_MODEL),
            llm_timeout=_env_int("LLM_TIMEOUT_SECONDS", DEFAULT_LLM_TIMEOUT),
            apify_token=os.environ.get("APIFY_API_TOKEN", ""),
            reddit_actor=os.environ.get("APIFY_REDDIT_ACTOR", DEFAULT_REDDIT_ACTOR),
            scrape_max_items=_env_int("SCRAPE_MAX_ITEMS", DEFAULT_SCRAPE_MAX_ITEMS),
            scrape_wait_secs=_env_int("SCRAPE_WAIT_SECS", DEFAULT_SCRAPE_WAIT_SECS),
            scrape_max_workers=_env_int("SCRAPE_MAX_WORKERS", DEFAULT_SCRAPE_MAX_WORKERS),
            scrape_dedupe=_env_bool("SCRAPE_DEDUPE", "true"),
            cron_secret=os.environ.get("CRON_SECRET", ""),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
            log_format=os.environ.get("LOG_FORMAT", "text").strip().lower(),
            log_file=os.environ.get("LOG_FILE", ""),
            state_file=os.environ.get("SIGNALREACH_STATE_FILE", DEFAULT_STATE_FILE),
            access_token=os.environ.get("SIGNALREACH_ACCESS_TOKEN", ""),
        )

    @property
    def allowed_origins(self) -> list:
        """Frontend origin plus the fixed local-development origins."""
        origins = [self.frontend_url] if self.frontend_url else []
        return origins + list(self.extra_origins)


# ─── VALIDATION ──────────────────────────────────────────────

def collect_errors(settings: Settings) -> list:
    """Problems that stop the gateway from starting."""
    errors = []
    if not settings.llm_api_key:
        errors.append("LLM_API_KEY is not set (OPENAI_API_KEY / GEMINI_API_KEY also accepted)")
    return errors


def collect_warnings(settings: Settings) -> list:
    """Problems that are reported but fall back to a working default."""
    warnings = []

    if settings.log_level not in _VALID_LOG_LEVELS:
        warnings.append(f"LOG_LEVEL must be one of {sorted(_VALID_LOG_LEVELS)}, got '{settings.log_level}' (using INFO)")

    if settings.log_format not in _VALID_LOG_FORMATS:
        warnings.append(f"LOG_FORMAT must be one of {sorted(_VALID_LOG_FORMATS)}, got '{settings.log_format}' (using text)")

    if settings.llm_timeout < 1:
        warnings.append(f"LLM_TIMEOUT_SECONDS must be positive, got {settings.llm_timeout}")

    if settings.scrape_max_workers < 1:
        warnings.append(f"SCRAPE_MAX_WORKERS must be positive, got {settings.scrape_max_workers}")

    if settings.scrape_max_items < 1:
        warnings.append(f"SCRAPE_MAX_ITEMS must be positive, got {settings.scrape_max_items}")

    return warnings


def validate(settings: Settings, strict: bool = False) -> list:
    """Validate all configuration settings.

    Args:
        settings: The settings to check.
        strict: If True, raise ConfigError when a required credential is
            missing. Warnings never raise.

    Returns:
        List of every problem found, errors first (empty if all valid).
    """
    errors = collect_errors(settings)
    if strict and errors:
        raise ConfigError(f"Configuration errors: {'; '.join(errors)}")
    warnings = collect_warnings(settings)
    for e in errors:
        print(f"[config] ERROR: {e}", file=sys.stderr)
    for w in warnings:
        print(f"[config] WARNING: {w}", file=sys.stderr)
    return errors + warnings


def _mask(value: str) -> str:
    return "set" if value else "missing"


def print_config(settings: Settings):
    """Print current configuration (safe - no secrets)."""
    print("=" * 50)
    print("SignalReach Configuration")
    print("=" * 50)
    print(f"  API_HOST:             {settings.api_host}")
    print(f"  PORT:                 {settings.port}")
    print(f"  FRONTEND_URL:         {settings.frontend_url or '(none)'}")
    print(f"  SUPABASE_URL:         {settings.supabase_url or '(none)'}")
    print(f"  SUPABASE_KEY:         {_mask(settings.supabase_key)}")
    print(f"  LLM_API_KEY:          {_mask(settings.llm_api_key)}")
    print(f"  LLM_BASE_URL:         {settings.llm_base_url or '(default)'}")
    print(f"  LLM_MODEL:            {settings.llm_model}")
    print(f"  LLM_TIMEOUT:          {settings.llm_timeout}s")
    print(f"  APIFY_API_TOKEN:      {_mask(settings.apify_token)}")
    print(f"  APIFY_REDDIT_ACTOR:   {settings.reddit_actor}")
    print(f"  SCRAPE_MAX_ITEMS:     {settings.scrape_max_items}")
    print(f"  SCRAPE_WAIT_SECS:     {settings.scrape_wait_secs}")
    print(f"  SCRAPE_MAX_WORKERS:   {settings.scrape_max_workers}")
    print(f"  SCRAPE_DEDUPE:        {settings.scrape_dedupe}")
    print(f"  CRON_SECRET:          {_mask(settings.cron_secret)}")
    print(f"  LOG_LEVEL:            {settings.log_level}")
    print(f"  LOG_FORMAT:           {settings.log_format}")
    print(f"  STATE_FILE:           {settings.state_file}")
    print(f"  ACCESS_TOKEN:         {_mask(settings.access_token)}")
    print("=" * 50)
