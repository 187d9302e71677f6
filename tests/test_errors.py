import pytest

from aplusb.errors import (
    AplusbError,
    EmptySourceError,
    OpenCLCallError,
    ResultsDiffer,
    error_code,
    report_error,
    safe_call,
)


def test_report_error_success_is_silent():
    report_error(0, "clFinish")


def test_report_error_tags_call_site():
    with pytest.raises(OpenCLCallError) as ei:
        report_error(-5, "clEnqueueReadBuffer")
    err = ei.value
    assert err.code == -5
    assert err.call == "clEnqueueReadBuffer"
    assert err.filename == "test_errors.py"
    assert "OpenCL error code -5 encountered at test_errors.py:" in str(err)


def test_safe_call_translates_driver_errors(fake_driver):
    driver, fake = fake_driver()
    with pytest.raises(OpenCLCallError) as ei:
        with safe_call(driver, "clCreateContext"):
            raise fake.LogicError("clCreateContext", -34)
    assert ei.value.code == -34
    assert ei.value.filename == "test_errors.py"
    assert isinstance(ei.value.__cause__, fake.Error)


def test_safe_call_leaves_other_exceptions_alone(fake_driver):
    driver, _ = fake_driver()
    with pytest.raises(KeyError):
        with safe_call(driver, "clCreateContext"):
            raise KeyError("x")


def test_error_code_without_code_attribute():
    assert error_code(ValueError("nope")) is None


def test_taxonomy_shares_base():
    assert issubclass(OpenCLCallError, AplusbError)
    assert "working directory" in str(EmptySourceError("src/cl/aplusb.cl"))
    diff = ResultsDiffer(7, 3.0, -1.0)
    assert diff.index == 7
    assert "results differ" in str(diff)
