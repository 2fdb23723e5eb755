"""
Pytest configuration and fixtures for S3 tests
"""

import logging

import pytest
from botocore.exceptions import BotoCoreError, ClientError

from s3functional.config import is_full_mode, load_config, use_ssl
from s3functional.datafiles import DataFiles
from s3functional.reporter import Reporter
from s3functional.s3_client import S3Client

logger = logging.getLogger("s3functional")

settings_key = pytest.StashKey[dict]()
reporter_key = pytest.StashKey[Reporter]()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "full: large scenario, only runs with S3_TEST_MODE=full"
    )
    settings = load_config()
    config.stash[settings_key] = settings
    config.stash[reporter_key] = Reporter(settings.get("results_log"))


def pytest_collection_modifyitems(config, items):
    if is_full_mode(config.stash[settings_key]):
        return
    skip_full = pytest.mark.skip(reason="needs S3_TEST_MODE=full")
    for item in items:
        if "full" in item.keywords:
            item.add_marker(skip_full)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    reporter = item.config.stash[reporter_key]
    settings = item.config.stash[settings_key]

    callspec = getattr(item, "callspec", None)
    args = dict(callspec.params) if callspec else {}

    if report.when == "call" or (report.when == "setup" and not report.passed):
        if report.passed:
            reporter.passed(item.name, report.duration, args)
        elif report.skipped:
            message = report.longrepr[2] if isinstance(report.longrepr, tuple) else str(report.longrepr)
            reporter.not_applicable(item.name, report.duration, message, args)
        else:
            error = call.excinfo.value if call.excinfo else None
            reporter.failed(item.name, report.duration, f"{report.when} failed", error, args)
            if not settings["run_on_fail"]:
                item.session.shouldstop = f"{item.name} failed and S3_RUN_ON_FAIL is off"


@pytest.fixture(scope="session")
def config(pytestconfig):
    """
    Test configuration fixture

    Returns configuration for S3 testing
    """
    return pytestconfig.stash[settings_key]


@pytest.fixture(scope="session")
def reporter(pytestconfig):
    return pytestconfig.stash[reporter_key]


@pytest.fixture(scope="session")
def datafiles(config):
    """
    Data file reader shared by the whole session

    The CRC32 cache it owns lives as long as the session.
    """
    return DataFiles(config.get("data_dir"))


@pytest.fixture(scope="session")
def endpoint_error(config):
    """None when the configured endpoint answers, else the error"""
    client = _make_client(config)
    try:
        client.ping()
    except (BotoCoreError, ClientError) as e:
        logger.warning("S3 endpoint %s unavailable: %s", config["s3_endpoint"], e)
        return e
    return None


def _make_client(config):
    return S3Client(
        endpoint_url=config["s3_endpoint"],
        access_key=config["s3_access_key"],
        secret_key=config["s3_secret_key"],
        region=config["s3_region"],
        use_ssl=use_ssl(config),
        verify_ssl=config["verify_ssl"],
    )


@pytest.fixture(scope="function")
def s3_client(config, endpoint_error):
    """
    S3 client fixture

    Creates an S3Client instance configured for the test environment,
    skipping the test when the endpoint can't be reached
    """
    if endpoint_error is not None:
        pytest.skip(f"S3 endpoint {config['s3_endpoint']} unavailable: {endpoint_error}")

    yield _make_client(config)

