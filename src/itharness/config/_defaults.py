"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "text",
        "file": "",
    },
    "runtime": {
        "executable": "java",
        "max_heap": "1g",
        "classpath": "target/classes",
        "entry_point": "mesosphere.marathon.Main",
        "options": None,
    },
    "proxy": {
        "python": "",
        "target_dirs": "/marathon",
        "build_id": "test",
        "ivy2_dir": "/root/.ivy2",
        "sbt_dir": "/root/.sbt",
    },
    "timeouts": {
        "server_start": 60.0,
        "wait": 30.0,
        "event": 60.0,
        "cleanup": 45.0,
    },
}

# Plain environment variables read verbatim, mapped to dotted config keys.
LEGACY_ENV_KEYS: dict[str, str] = {
    "CLASSPATH": "runtime.classpath",
    "TARGET_DIRS": "proxy.target_dirs",
    "BUILD_ID": "proxy.build_id",
    "IVY2_DIR": "proxy.ivy2_dir",
    "SBT_DIR": "proxy.sbt_dir",
}
