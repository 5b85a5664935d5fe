"""
命令行入口测试
"""

import json
import logging

import pytest

import main
from tests.conftest import ISS_LINE1, ISS_LINE2, ISS_NAME
from utils.logger import PACKAGE_LOGGERS

# ISS TLE纪元 08264.51782528
ISS_EPOCH_ISO = "2008-09-20T12:25:40"


@pytest.fixture(autouse=True)
def reset_logging():
    """main会配置包logger，测试后恢复"""
    yield
    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.propagate = True
        package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def tle_file(tmp_path):
    path = tmp_path / "stations.txt"
    path.write_text(f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n", encoding="utf-8")
    return path


def _base_args(tle_path):
    return ["--tle", str(tle_path), "--lat", "40", "--lon", "-75",
            "--start", ISS_EPOCH_ISO, "--days", "1", "--min-el", "0"]


class TestParser:
    """测试参数解析"""

    def test_required_arguments(self):
        with pytest.raises(SystemExit):
            main.create_parser().parse_args(["--lat", "0"])

    def test_parse_start(self):
        assert main.parse_start("2024-01-01T12:00:00") == pytest.approx(24001.5)
        assert main.parse_start("2024-01-01T13:00:00+01:00") == pytest.approx(24001.5)


class TestMain:
    """测试主流程"""

    def test_json_output(self, tle_file, capsys):
        exit_code = main.main(_base_args(tle_file) + ["--json"])

        assert exit_code == 0
        passes = json.loads(capsys.readouterr().out)
        assert passes
        assert all(p['sat_name'] == ISS_NAME for p in passes)
        aos = [p['aos_epoch'] for p in passes]
        assert aos == sorted(aos)
        for p in passes:
            assert p['aos_epoch'] < p['max_el_epoch'] < p['los_epoch']
            assert 0.0 <= p['max_el'] <= 90.0

    def test_table_output(self, tle_file, capsys):
        exit_code = main.main(_base_args(tle_file) + ["--propagator", "analytic"])
        assert exit_code == 0
        assert "ISS" in capsys.readouterr().out

    def test_missing_tle_file(self, tmp_path):
        assert main.main(_base_args(tmp_path / "missing.txt")) == 1

    def test_empty_tle_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("\n", encoding="utf-8")
        assert main.main(_base_args(path)) == 1

    def test_invalid_config(self, tle_file, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("propagator: hpop\n", encoding="utf-8")
        assert main.main(_base_args(tle_file) + ["--config", str(config)]) == 2

    def test_invalid_log_level(self, tle_file):
        assert main.main(_base_args(tle_file) + ["--log-level", "LOUD"]) == 2
