# tests/test_config.py

from pathlib import Path

import pytest

from scensim_core.config import ConfigParsingError, RunConfig, parse_run_config


class TestRunConfigParsing:
    """VERIFIES: Raw run configurations are validated and normalised into a RunConfig."""

    @pytest.mark.parametrize("raw", [None, {}])
    def test_defaults(self, raw):
        config = parse_run_config(raw)
        assert config == RunConfig()
        assert config.backend == "debugger"
        assert config.trace is False

    def test_trace_path_switches_tracing_on(self):
        config = parse_run_config({"trace_path": "out/trace.scen.json"})
        assert config.trace is True
        assert config.trace_path == Path("out/trace.scen.json")

    def test_trace_without_path_is_rejected(self):
        with pytest.raises(ConfigParsingError, match="trace_path"):
            parse_run_config({"trace": True})

    def test_trace_can_be_switched_off_explicitly(self):
        config = parse_run_config({"trace": False, "trace_path": "t.scen.json"})
        assert config.trace is False

    def test_unknown_backend(self):
        with pytest.raises(ConfigParsingError, match="backend"):
            parse_run_config({"backend": "wasmer"})

    def test_unknown_key(self):
        with pytest.raises(ConfigParsingError, match="gas_schedule"):
            parse_run_config({"gas_schedule": "v4"})

    def test_log_level_is_upper_cased(self):
        assert parse_run_config({"log_level": "debug"}).log_level == "DEBUG"

    def test_current_dir_and_backend(self):
        config = parse_run_config({"backend": "vm-go", "current_dir": "scenarios"})
        assert config.backend == "vm-go"
        assert config.current_dir == Path("scenarios")

    def test_non_mapping(self):
        with pytest.raises(ConfigParsingError, match="must be a mapping"):
            parse_run_config(["debugger"])
