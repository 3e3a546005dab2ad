from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from goudron.goudron_http import normalize_http_config

MODE_KEYS = ('silent', 'quiet', 'blocking', 'formatted')
HTTP_KEYS = ('timeout', 'retries', 'backoff', 'headers', 'follow-redirects')


@dataclass
class RunConfig:
    """Execution modes plus the transport settings handed to the HTTP client."""
    silent: bool = False
    quiet: bool = False
    blocking: bool = False
    # Collapse the whole outcome to `true`/`false`; implies silent and quiet.
    formatted: bool = False
    http: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.formatted:
            self.silent = True
            self.quiet = True
        self.http = normalize_http_config(self.http)

    def with_flags(self, **flags) -> 'RunConfig':
        """Returns a copy with the given modes switched on (flags never switch a mode off)."""
        modes = {k: getattr(self, k) or bool(flags.get(k)) for k in MODE_KEYS}
        return RunConfig(http=dict(self.http), **modes)


def _check_http(http: dict) -> None:
    for key in ('timeout', 'backoff'):
        value = http.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"http '{key}' must be a number")
    retries = http.get('retries', 0)
    if isinstance(retries, bool) or not isinstance(retries, int):
        raise ValueError("http 'retries' must be an integer")
    if not isinstance(http.get('headers', {}), dict):
        raise ValueError("http 'headers' must be a mapping")
    if not isinstance(http.get('follow-redirects', False), bool):
        raise ValueError("http 'follow-redirects' must be true or false")


def parse_config(data: Any) -> RunConfig:
    if data is None:
        return RunConfig()
    if not isinstance(data, dict):
        raise ValueError("configuration must be a mapping")

    unknown = set(data) - set(MODE_KEYS) - {'http'}
    if unknown:
        raise ValueError(f"unknown configuration keys: {', '.join(sorted(map(str, unknown)))}")

    http = data.get('http') or {}
    if not isinstance(http, dict):
        raise ValueError("'http' must be a mapping")
    unknown = set(http) - set(HTTP_KEYS)
    if unknown:
        raise ValueError(f"unknown http settings: {', '.join(sorted(map(str, unknown)))}")

    for key in MODE_KEYS:
        if key in data and not isinstance(data[key], bool):
            raise ValueError(f"'{key}' must be true or false")
    _check_http(http)

    modes = {k: data[k] for k in MODE_KEYS if k in data}
    return RunConfig(http=http, **modes)


def load_config(path: Optional[str]) -> RunConfig:
    """Load a YAML configuration file; no path means the defaults."""
    if path is None:
        return RunConfig()
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid YAML: {e}") from e
    return parse_config(data)
