import copy
import os
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_USER_AGENT = (
    "PublicDefenderAI-Bot/1.0 (Educational Legal Resource; contact@publicdefenderai.org)"
)

STRING_LIST_KEYS = ('sections',)


class Config:
    def __init__(self, config_path: str = "config/sites.yaml", data: Optional[dict] = None):
        self.config_path = config_path
        self._config = self._load_config(data)
        self._validate_config()

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a config from an in-memory mapping instead of a YAML file."""
        return cls(config_path="<memory>", data=data)

    def _load_config(self, data: Optional[dict]) -> dict:
        if data is not None:
            config = copy.deepcopy(data)
        else:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        self._apply_env_overrides(config)
        return config

    def _apply_env_overrides(self, config: dict):
        """Apply environment variable overrides to config.

        Env vars format: STATUTES__SECTION__KEY=value
        For nested dicts, use double underscore: STATUTES__scraper__min_delay_seconds=5
        """

        def _set_nested_value(d: dict, keys: list, value: str):
            """Set a nested value in dict using list of keys."""
            for key in keys[:-1]:
                if not isinstance(d.get(key), dict):
                    d[key] = {}
                d = d[key]
            if keys[-1] in STRING_LIST_KEYS:
                # section ids like "31.10" must not be read as numbers
                d[keys[-1]] = [item.strip() for item in value.split(',') if item.strip()]
            else:
                d[keys[-1]] = self._convert_value(value)

        prefix = "STATUTES__"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            parts = env_key[len(prefix):].lower().split('__')
            if len(parts) < 2:
                continue  # Need at least section and key

            _set_nested_value(config, parts, env_value)

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        if value.isdigit() or (value.startswith('-') and value[1:].isdigit()):
            return int(value)

        try:
            if '.' in value:
                return float(value)
        except ValueError:
            pass

        # List (comma-separated)
        if ',' in value:
            return [self._convert_value(item.strip()) for item in value.split(',')]

        return value

    def _validate_config(self):
        """Validate required configuration sections exist."""
        required_sections = ['scraper', 'storage']
        for section in required_sections:
            if section not in self._config:
                raise ValueError(f"Missing required configuration section: {section}")

    def as_dict(self) -> dict:
        return copy.deepcopy(self._config)

    @property
    def scraper_config(self) -> Dict:
        """Return outbound request configuration."""
        return self._config.get('scraper') or {}

    @property
    def policy_config(self) -> Dict:
        """Return crawl policy configuration."""
        return self._config.get('policy') or {}

    @property
    def storage_config(self) -> Dict:
        """Return storage configuration."""
        return self._config.get('storage') or {}

    @property
    def logging_config(self) -> Dict:
        """Return logging configuration."""
        return self._config.get('logging') or {}

    @property
    def sources_config(self) -> Dict:
        """Return per-jurisdiction source overrides."""
        return self._config.get('sources') or {}

    @property
    def fallback_config(self) -> Dict:
        """Return generic fallback source configuration."""
        return self._config.get('fallback') or {}

    @property
    def routing_config(self) -> Dict:
        return self._config.get('routing') or {}

    @property
    def audit_config(self) -> Dict:
        return self._config.get('audit') or {}

    @property
    def history_config(self) -> Dict:
        return self._config.get('history') or {}

    # ========== SCRAPER ==========
    @property
    def user_agent(self) -> str:
        """Return the declared crawler identity."""
        return self.scraper_config.get('user_agent') or DEFAULT_USER_AGENT

    @property
    def min_delay_seconds(self) -> float:
        """Minimum spacing between two requests of one scraper instance."""
        return float(self.scraper_config.get('min_delay_seconds', 2.0))

    @property
    def request_timeout(self) -> float:
        """Return request timeout in seconds."""
        return float(self.scraper_config.get('timeout', 30))

    @property
    def request_retries(self) -> int:
        """Return number of attempts for transient network errors."""
        return int(self.scraper_config.get('retries', 3))

    @property
    def backoff_factor(self) -> float:
        """Return backoff factor for retries."""
        return float(self.scraper_config.get('backoff_factor', 1.0))

    # ========== POLICY ==========
    @property
    def allow_when_robots_unreachable(self) -> bool:
        """Whether an unreachable robots.txt is treated as allow-all."""
        return bool(self.policy_config.get('allow_when_robots_unreachable', True))

    # ========== STORAGE ==========
    @property
    def database_path(self) -> str:
        """Return database path."""
        return self.storage_config.get('database', 'data/statutes.db')

    # ========== LOGGING ==========
    @property
    def log_level(self) -> str:
        return self.logging_config.get('level', 'INFO')

    @property
    def log_file(self) -> Optional[str]:
        return self.logging_config.get('file')

    @property
    def log_max_size_mb(self) -> int:
        return self.logging_config.get('max_size_mb', 10)

    @property
    def log_backup_count(self) -> int:
        return self.logging_config.get('backup_count', 5)

    # ========== SOURCES ==========
    def source_config(self, jurisdiction: str) -> Dict:
        """Per-jurisdiction overrides; keys may come in either case from env vars."""
        sources = self.sources_config
        return sources.get(jurisdiction.upper()) or sources.get(jurisdiction.lower()) or {}

    def source_enabled(self, jurisdiction: str) -> bool:
        return bool(self.source_config(jurisdiction).get('enabled', True))

    def source_sections(self, jurisdiction: str) -> Optional[List[str]]:
        sections = self.source_config(jurisdiction).get('sections')
        if sections is None:
            return None
        if not isinstance(sections, list):
            sections = [sections]
        return [str(s) for s in sections]

    @property
    def fallback_jurisdictions(self) -> Dict[str, Dict]:
        """Extra fallback profiles keyed by upper-case jurisdiction code."""
        profiles = self.fallback_config.get('jurisdictions') or {}
        return {code.upper(): profile for code, profile in profiles.items()}

    @property
    def routed_via_fallback(self) -> List[str]:
        """Jurisdictions whose official site must not be scraped directly."""
        codes = self.routing_config.get('via_fallback') or []
        if isinstance(codes, str):
            codes = [codes]
        return [code.upper() for code in codes]

    # ========== AUDIT / HISTORY ==========
    @property
    def audit_delay_seconds(self) -> float:
        return float(self.audit_config.get('delay_seconds', 1.0))

    @property
    def audit_timeout(self) -> float:
        return float(self.audit_config.get('timeout', 10))

    @property
    def history_limit(self) -> int:
        return int(self.history_config.get('limit', 50))

    @property
    def jurisdiction_history_limit(self) -> int:
        return int(self.history_config.get('jurisdiction_limit', 10))
