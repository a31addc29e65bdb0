#config.py
import os
from typing import List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# === Pydantic schema definitions ===
class SourceConfig(BaseModel):
    url: str
    timeout_seconds: float = 20.0
    user_agent: str = "sp100-symbol-builder/1.0 (+https://github.com/)"

class OutputConfig(BaseModel):
    path: str = "public/sp100.json"

class SymbolsConfig(BaseModel):
    # Dual-class shares: BRK.B vs BRK/B. Exactly one convention is emitted.
    class_separator: Literal['.', '/'] = '.'

class ValidationConfig(BaseModel):
    min_symbols: int = Field(default=80, ge=1)
    must_have: List[str] = Field(default_factory=list)
    max_missing_must_have: int = Field(default=0, ge=0)

class RetryConfig(BaseModel):
    attempts: int = Field(default=3, ge=1)
    backoff_factor: float = Field(default=2.0, ge=1.0)
    min_wait_seconds: float = Field(default=1.0, ge=0.0)
    max_wait_seconds: float = Field(default=5.0, ge=0.0)

    @field_validator('max_wait_seconds')
    def max_after_min(cls, v, info) -> float:
        min_wait = info.data.get('min_wait_seconds')
        if min_wait is not None and v < min_wait:
            raise ValueError('retry.max_wait_seconds must be >= retry.min_wait_seconds')
        return v

class ConfigSchema(BaseModel):
    source: SourceConfig
    output: OutputConfig = Field(default_factory=OutputConfig)
    symbols: SymbolsConfig = Field(default_factory=SymbolsConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)


# ── Load .env ───────────────────────────────────────────────────────────────────
load_dotenv()  # will look for a .env in your working directory

base_dir = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_PATH = os.path.join(base_dir, 'config.yaml')


def load_config(config_path: Optional[str] = None) -> ConfigSchema:
    """
    Load and validate the YAML config, then apply environment overrides
    (SOURCE_URL, SP100_OUTPUT_PATH).
    """
    config_path = config_path or os.getenv('SP100_CONFIG', DEFAULT_CONFIG_PATH)
    with open(config_path, encoding='utf-8') as f:
        cfg_dict = yaml.safe_load(f) or {}

    cfg = ConfigSchema.model_validate(cfg_dict)
    if os.getenv('SOURCE_URL'):
        cfg.source.url = os.environ['SOURCE_URL']
    if os.getenv('SP100_OUTPUT_PATH'):
        cfg.output.path = os.environ['SP100_OUTPUT_PATH']
    return cfg


# ── Load & validate YAML ───────────────────────────────────────────────────────
config = load_config()

# === Source ===
SOURCE_URL      = config.source.url
FETCH_TIMEOUT   = config.source.timeout_seconds
USER_AGENT      = config.source.user_agent

# === Output ===
OUTPUT_PATH     = config.output.path

# === Symbol convention ===
CLASS_SEPARATOR = config.symbols.class_separator

# === Validation ===
MIN_SYMBOLS           = config.validation.min_symbols
MUST_HAVE             = config.validation.must_have
MAX_MISSING_MUST_HAVE = config.validation.max_missing_must_have

# === Retry & backoff ===
MAX_RETRIES    = config.retry.attempts
BACKOFF_FACTOR = config.retry.backoff_factor
MIN_WAIT       = config.retry.min_wait_seconds
MAX_WAIT       = config.retry.max_wait_seconds
