import sys

from itharness.config import ProxyConfig, RuntimeConfig


class TestRuntimeConfig:
    def test_jvm_command_prefix(self) -> None:
        runtime = RuntimeConfig(executable="/opt/jdk/bin/java", max_heap="2g", classpath="cp")

        assert runtime.command_prefix() == [
            "/opt/jdk/bin/java",
            "-Xmx2g",
            "-classpath",
            "cp",
            "mesosphere.marathon.Main",
        ]

    def test_explicit_options_replace_jvm_defaults(self) -> None:
        runtime = RuntimeConfig(executable="python", options=("-u",), entry_point="stub.py")

        assert runtime.command_prefix() == ["python", "-u", "stub.py"]

    def test_empty_options_are_respected(self) -> None:
        runtime = RuntimeConfig(executable="server", options=(), entry_point="run")

        assert runtime.command_prefix() == ["server", "run"]


class TestProxyConfig:
    def test_interpreter_defaults_to_current(self) -> None:
        assert ProxyConfig().interpreter == sys.executable

    def test_interpreter_override(self) -> None:
        assert ProxyConfig(python="/usr/bin/python3").interpreter == "/usr/bin/python3"
