import pytest

import app as app_module
from access_log import AccessLog


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def access_log(log_dir):
    with AccessLog(str(log_dir)) as log:
        yield log


@pytest.fixture
def app(access_log, tmp_path):
    flask_app = app_module.create_app(access_log, repo_dir=str(tmp_path))
    flask_app.testing = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def read_log(access_log):
    with open(access_log.path, encoding="utf-8") as f:
        return f.read()


def access_lines(access_log):
    return [line for line in read_log(access_log).splitlines()
            if line.startswith("[") and " ERROR: " not in line]


def error_records(access_log):
    return [line for line in read_log(access_log).splitlines()
            if line.startswith("[") and " ERROR: " in line]
