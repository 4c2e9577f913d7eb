import json
import logging

import pytest
import yaml

from config.config import (ProtocolConfig, SimulationConfig, SystemConfig,
                           load_config, save_config)
from utils.utils import (PerformanceMonitor, create_performance_report,
                         format_duration, save_results, setup_logging)


@pytest.fixture(autouse=True)
def in_tmp_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class TestConfig:
    def test_defaults(self):
        config = SystemConfig()
        assert config.protocol_config.security_level == 1
        assert config.protocol_config.num_authorities == 4
        assert config.simulation_config.election_set == "SINGLE_VOTE"
        assert config.log_dir.is_dir()
        assert config.results_dir.is_dir()

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            ProtocolConfig(security_level=3)
        with pytest.raises(ValueError):
            ProtocolConfig(num_authorities=0)
        with pytest.raises(ValueError):
            ProtocolConfig(return_code_length=0)
        with pytest.raises(ValueError):
            SimulationConfig(election_set="PRESIDENTIAL")
        with pytest.raises(ValueError):
            SimulationConfig(num_voters=0)

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.protocol_config == ProtocolConfig()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({'protocol': {'security_level': 0}, 'simulation': {'num_voters': 3}}))
        config = load_config(path)
        assert config.protocol_config.security_level == 0
        assert config.protocol_config.num_authorities == 4
        assert config.simulation_config.num_voters == 3

    def test_malformed_file_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("protocol: [unclosed")
        with caplog.at_level(logging.WARNING):
            config = load_config(path)
        assert config.protocol_config == ProtocolConfig()
        assert "Could not parse" in caplog.text

    def test_save_and_load(self, tmp_path):
        config = SystemConfig(
            protocol_config=ProtocolConfig(security_level=2, num_authorities=3),
            simulation_config=SimulationConfig("SIMPLE_SAMPLE", 25),
            log_dir=tmp_path / "custom_logs",
            enable_benchmarking=False
        )
        path = tmp_path / "saved.yaml"
        save_config(config, path)
        loaded = load_config(path)

        assert loaded.protocol_config == config.protocol_config
        assert loaded.simulation_config == config.simulation_config
        assert loaded.log_dir == tmp_path / "custom_logs"
        assert not loaded.enable_benchmarking


class TestPerformanceMonitor:
    def test_summary(self):
        monitor = PerformanceMonitor()
        for _ in range(3):
            with monitor.start_operation("shuffle"):
                pass
        with monitor.start_operation("tallying"):
            pass

        summary = monitor.get_summary()
        assert summary['total_operations'] == 4
        assert summary['operations']['shuffle']['count'] == 3
        assert summary['operations']['tallying']['std_duration'] == 0.0
        assert summary['total_duration'] >= 0.0

        monitor.reset()
        assert monitor.get_summary() == {'total_operations': 0, 'total_duration': 0.0, 'operations': {}}

    def test_failed_operation_is_recorded(self):
        monitor = PerformanceMonitor()
        with pytest.raises(RuntimeError):
            with monitor.start_operation("decryption"):
                raise RuntimeError("boom")
        assert monitor.metrics[0].additional_data == {'exception': True}

    def test_report(self, tmp_path):
        monitor = PerformanceMonitor()
        assert "No performance data available." in create_performance_report(monitor)
        with monitor.start_operation("ballot_verification"):
            pass
        assert "BALLOT_VERIFICATION:" in create_performance_report(monitor)

        monitor.save_metrics(tmp_path / "metrics" / "metrics.json")
        data = json.loads((tmp_path / "metrics" / "metrics.json").read_text())
        assert data['summary']['total_operations'] == 1


class TestReporting:
    def test_save_results(self, tmp_path):
        results = {
            'parameters': {'security_level': 1, 'authorities': 2},
            'tally': [1, 3, 0],
            'verification': {'tally_matches_votes': True},
            'digest': b'\x01\x02'
        }
        path = tmp_path / "results" / "report.json"
        save_results(results, path)

        data = json.loads(path.read_text())
        assert data['data']['tally'] == [1, 3, 0]
        assert data['data']['digest'] == "0102"
        summary = (tmp_path / "results" / "report_summary.txt").read_text()
        assert "Candidate 2: 3 votes (75.0%)" in summary
        assert "tally_matches_votes:  PASSED" in summary

    def test_format_duration(self):
        assert format_duration(0.25) == "250.0ms"
        assert format_duration(2.5) == "2.50s"
        assert format_duration(75) == "1m 15.0s"
        assert format_duration(3725) == "1h 2m 5.0s"

    def test_setup_logging_writes_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        root = logging.getLogger()
        previous_handlers = root.handlers[:]
        previous_level = root.level
        try:
            setup_logging("DEBUG", log_file=log_file)
            logging.getLogger("services").debug("ballot accepted")
            for handler in root.handlers:
                handler.flush()
            assert "ballot accepted" in log_file.read_text()
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in previous_handlers:
                root.addHandler(handler)
            root.setLevel(previous_level)
