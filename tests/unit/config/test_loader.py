# pyright: reportAny=false, reportUnknownArgumentType=false
import copy
from pathlib import Path

import pytest

from itharness.config import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    parse_legacy_env,
    read_toml_file,
    set_nested_key,
)
from itharness.exceptions import ConfigLoadError


class TestReadTomlFile:
    def test_parses_valid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "harness.toml"
        _ = path.write_text('[timeouts]\nwait = 5.0\n\n[runtime]\nexecutable = "java17"\n')

        result = read_toml_file(path)

        assert result == {"timeouts": {"wait": 5.0}, "runtime": {"executable": "java17"}}

    def test_raises_file_not_found_for_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(tmp_path / "missing.toml")

    def test_raises_config_load_error_for_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "invalid.toml"
        _ = path.write_text('[valid]\nkey = "value"\n\n[invalid section\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None
        assert error.__cause__ is not None


class TestDeepMerge:
    def test_recursively_merges_dicts(self) -> None:
        base = {"timeouts": {"wait": 30.0, "event": 60.0}, "logging": {"level": "info"}}
        override = {"timeouts": {"wait": 5.0}}

        result = deep_merge(base, override)

        assert result == {
            "timeouts": {"wait": 5.0, "event": 60.0},
            "logging": {"level": "info"},
        }

    def test_replaces_lists(self) -> None:
        result = deep_merge({"options": ["-Xmx1g", "-ea"]}, {"options": ["-u"]})

        assert result == {"options": ["-u"]}

    def test_does_not_modify_inputs(self) -> None:
        base = {"a": {"b": [1, 2]}}
        override = {"a": {"c": 3}}
        base_before = copy.deepcopy(base)
        override_before = copy.deepcopy(override)

        result = deep_merge(base, override)
        result["a"]["b"].append(3)

        assert base == base_before
        assert override == override_before


class TestSetNestedKey:
    def test_creates_intermediate_dicts(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "runtime.classpath", "lib/*")

        assert d == {"runtime": {"classpath": "lib/*"}}

    def test_replaces_scalar_intermediate(self) -> None:
        d: dict[str, object] = {"runtime": "java"}

        set_nested_key(d, "runtime.executable", "java")

        assert d == {"runtime": {"executable": "java"}}


class TestParseEnvValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("2.5", 2.5),
            ('["-u", "-X"]', ["-u", "-X"]),
            ('{"a": 1}', {"a": 1}),
            ("[not json", "[not json"),
            ("java", "java"),
            ("1.2.3", "1.2.3"),
        ],
    )
    def test_infers_type(self, raw: str, expected: object) -> None:
        assert parse_env_value(raw) == expected


class TestParseEnvVars:
    def test_maps_sections(self) -> None:
        environ = {
            "ITHARNESS_TIMEOUTS__WAIT": "5",
            "ITHARNESS_LOGGING__LEVEL": "debug",
            "OTHER_VAR": "ignored",
        }

        result = parse_env_vars(environ=environ)

        assert result == {"timeouts": {"wait": 5}, "logging": {"level": "debug"}}

    def test_ignores_flat_switches(self) -> None:
        environ = {"ITHARNESS_DEBUG": "1", "ITHARNESS_LOG_LEVEL": "debug"}

        assert parse_env_vars(environ=environ) == {}


class TestParseLegacyEnv:
    def test_java_home_selects_executable(self) -> None:
        result = parse_legacy_env({"JAVA_HOME": "/opt/jdk"})

        assert result == {"runtime": {"executable": str(Path("/opt/jdk") / "bin" / "java")}}

    def test_reads_build_knobs_verbatim(self) -> None:
        environ = {
            "CLASSPATH": "a.jar:b.jar",
            "TARGET_DIRS": "/build",
            "BUILD_ID": "42",
            "IVY2_DIR": "/cache/ivy2",
            "SBT_DIR": "",
        }

        result = parse_legacy_env(environ)

        assert result == {
            "runtime": {"classpath": "a.jar:b.jar"},
            "proxy": {"target_dirs": "/build", "build_id": "42", "ivy2_dir": "/cache/ivy2"},
        }
