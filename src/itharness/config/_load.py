# pyright: reportAny=false, reportExplicitAny=false
"""Settings loading from defaults, files and environment."""

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from itharness.exceptions import ConfigValidationError

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, parse_legacy_env, read_toml_file
from ._models import HarnessSettings


def load_settings(
    config_path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> HarnessSettings:
    """Load harness settings from all sources.

    Sources are merged from lowest to highest precedence:
    1. Built-in defaults
    2. TOML file at ``config_path`` (if given)
    3. Plain environment knobs (``JAVA_HOME``, ``CLASSPATH``, ``TARGET_DIRS``...)
    4. ``ITHARNESS_<SECTION>__<KEY>`` environment variables
    5. Explicit ``overrides``

    Args:
        config_path: Optional TOML file.
        overrides: Highest-precedence values, nested by section.
        environ: Environment to read (defaults to ``os.environ``).

    Returns:
        The validated settings.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigLoadError: If the TOML file cannot be parsed.
        ConfigValidationError: If the merged values are invalid.
    """
    merged = DEFAULT_CONFIG
    source = "defaults"

    if config_path is not None:
        merged = deep_merge(merged, read_toml_file(config_path))
        source = str(config_path)

    merged = deep_merge(merged, parse_legacy_env(environ))
    merged = deep_merge(merged, parse_env_vars(environ=environ))
    if overrides:
        merged = deep_merge(merged, overrides)

    try:
        return HarnessSettings.model_validate(merged)
    except ValidationError as e:
        msg = f"Invalid harness settings: {e.error_count()} error(s)"
        raise ConfigValidationError(
            msg,
            errors=[dict(err) for err in e.errors()],
            source=source,
        ) from e
