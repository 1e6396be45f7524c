import json
from datetime import time
from decimal import Decimal

import pytest

from hrms_payroll import create_app
from hrms_payroll.common.errors import PolicyError
from hrms_payroll.extensions import PayrollEngine, current_engine
from hrms_payroll.models.payroll import UnclassifiedDeductionPolicy


@pytest.fixture()
def app():
    return create_app(test_config={"TESTING": True})


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


def test_engine_built_from_defaults(app):
    engine = app.extensions["payroll_engine"]
    assert isinstance(engine, PayrollEngine)
    assert engine.attendance_policy.scheduled_start == time(8, 30)
    assert engine.attendance_policy.full_day_minimum_hours == Decimal("8")
    assert engine.pay_policy.unclassified_deductions is UnclassifiedDeductionPolicy.EXCLUDE


def test_current_engine_inside_app_context(app):
    with app.app_context():
        assert current_engine() is app.extensions["payroll_engine"]


def test_test_config_overrides_defaults():
    app = create_app(test_config={
        "ATTENDANCE_SCHEDULED_START": "09:00",
        "ATTENDANCE_SCHEDULED_END": "18:00",
        "PAYROLL_UNCLASSIFIED_DEDUCTIONS": "include",
        "PAYROLL_BATCH_WORKERS": "4",
    })
    engine = app.extensions["payroll_engine"]
    assert engine.attendance_policy.scheduled_start == time(9, 0)
    assert engine.pay_policy.unclassified_deductions is UnclassifiedDeductionPolicy.INCLUDE
    assert engine.pay_policy.batch_workers == 4


def test_invalid_policy_stops_startup():
    with pytest.raises(PolicyError):
        create_app(test_config={"ATTENDANCE_HALF_DAY_MIN_HOURS": "9"})
    with pytest.raises(PolicyError):
        create_app(test_config={"PAYROLL_UNCLASSIFIED_DEDUCTIONS": "sometimes"})
    with pytest.raises(PolicyError):
        create_app(test_config={"PAYROLL_BATCH_WORKERS": "-2"})


def test_missing_config_object_is_tolerated():
    app = create_app("hrms_payroll_missing_settings.Config")
    assert "payroll_engine" in app.extensions


# ---- CLI ----

def test_check_policy_command(runner):
    result = runner.invoke(args=["payroll", "check-policy"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["attendance_policy"]["scheduled_start"] == "08:30"
    assert data["unclassified_deductions"] == "exclude"
    assert data["batch_workers"] == 0


def test_classify_command(runner):
    result = runner.invoke(args=[
        "payroll", "classify", "--date", "2025-03-03",
        "--check-in", "08:50", "--check-out", "17:30", "--break-minutes", "30",
    ])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["arrival_status"] == "late"
    assert data["work_duration"] == "full_day"
    assert data["total_hours"] == pytest.approx(8.1667, abs=1e-3)


def test_classify_command_rejects_bad_time(runner):
    result = runner.invoke(args=["payroll", "classify", "--date", "2025-03-03", "--check-in", "late"])
    assert result.exit_code != 0
    assert "PAYLOAD_INVALID" in result.output


def _employee(**kw):
    row = {
        "employee_id": "E001",
        "base_salary": 90000,
        "attendance": {"expected_salary": 90000, "earned_salary": 85000},
        "allowances": [{"name": "Fixed allowance", "amount": 12000}],
        "deductions": [
            {"component_name": "EPF", "calculation_type": "percentage", "calculation_value": 8, "category": "epf"},
            {"component_name": "ETF", "calculation_type": "percentage", "calculation_value": 3, "category": "etf"},
        ],
        "adjustments": {"loans": 2000, "advances": 500, "bonuses": 3000},
    }
    row.update(kw)
    return row


def test_compute_command_single(runner, tmp_path):
    path = tmp_path / "employee.json"
    path.write_text(json.dumps(_employee()))
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["gross_salary"] == 100000.0
    assert data["deductions_total"] == 11850.0
    assert data["net_salary"] == 88150.0
    assert "attendance_summary" not in data


def test_compute_command_list_with_attendance_days(runner, tmp_path):
    days = [
        {"date": "2025-03-03", "check_in": "08:30", "check_out": "16:30"},
        {"date": "2025-03-04"},
    ]
    rows = [
        _employee(),
        {
            "employee_id": "E002",
            "base_salary": 1000,
            "attendance_days": days,
            "deductions": [{"component_name": "EPF", "calculation_type": "percentage", "calculation_value": 10}],
        },
    ]
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(rows))
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert [x["employee_id"] for x in data] == ["E001", "E002"]
    second = data[1]
    assert second["earned_salary"] == 500.0
    assert second["shortfall"] == 500.0
    assert second["epf_employee_total"] == 50.0
    assert second["net_salary"] == 450.0
    assert second["attendance_summary"]["full_days"] == 1
    assert second["attendance_summary"]["absent_days"] == 1


def test_compute_command_rejects_bad_payload(runner, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"base_salary": 100}))
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code != 0
    assert "employee_id is required" in result.output

    path.write_text("{not json")
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code != 0
    assert "PAYLOAD_INVALID" in result.output


def test_compute_command_surfaces_open_days(runner, tmp_path):
    row = {
        "employee_id": "E003",
        "base_salary": 2000,
        "attendance_days": [
            {"date": "2025-03-03", "check_in": "08:30", "check_out": "16:30"},
            {"date": "2025-03-04", "check_in": "08:30"},
        ],
    }
    path = tmp_path / "open.json"
    path.write_text(json.dumps(row))
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["earned_salary"] == 1000.0
    assert [w["code"] for w in data["warnings"]] == ["OPEN_ATTENDANCE"]
    assert data["attendance_summary"]["open_days"] == 1


def test_compute_command_rejects_negative_break(runner, tmp_path):
    row = {
        "employee_id": "E004",
        "base_salary": 2000,
        "attendance_days": [{"date": "2025-03-03", "check_in": "08:30", "check_out": "10:30",
                             "break_minutes": -600}],
    }
    path = tmp_path / "break.json"
    path.write_text(json.dumps(row))
    result = runner.invoke(args=["payroll", "compute", str(path)])
    assert result.exit_code != 0
    assert "break_minutes cannot be negative" in result.output
