import json
import os

import click
from flask import Flask
from flask.cli import AppGroup

from hrms_payroll.common.errors import PayrollError
from hrms_payroll.extensions import init_engine, current_engine

payroll_cli = AppGroup("payroll", help="Attendance classification and payroll reconciliation.")


def create_app(config_object: str | None = None, test_config: dict | None = None):
    app = Flask(__name__)

    # Basic inline config (defaults)
    app.config["ATTENDANCE_SCHEDULED_START"] = os.getenv("ATTENDANCE_SCHEDULED_START", "08:30")
    app.config["ATTENDANCE_SCHEDULED_END"] = os.getenv("ATTENDANCE_SCHEDULED_END", "17:30")
    app.config["ATTENDANCE_LATE_THRESHOLD_MINUTES"] = os.getenv("ATTENDANCE_LATE_THRESHOLD_MINUTES", "15")
    app.config["ATTENDANCE_FULL_DAY_MIN_HOURS"] = os.getenv("ATTENDANCE_FULL_DAY_MIN_HOURS", "8")
    app.config["ATTENDANCE_HALF_DAY_MIN_HOURS"] = os.getenv("ATTENDANCE_HALF_DAY_MIN_HOURS", "4")
    app.config["ATTENDANCE_SHORT_LEAVE_MIN_HOURS"] = os.getenv("ATTENDANCE_SHORT_LEAVE_MIN_HOURS", "2")
    app.config["ATTENDANCE_STANDARD_HOURS"] = os.getenv("ATTENDANCE_STANDARD_HOURS", "8")
    app.config["ATTENDANCE_WEEKEND_OT_MULTIPLIER"] = os.getenv("ATTENDANCE_WEEKEND_OT_MULTIPLIER", "1.5")
    app.config["ATTENDANCE_HOLIDAY_OT_MULTIPLIER"] = os.getenv("ATTENDANCE_HOLIDAY_OT_MULTIPLIER", "2.5")
    app.config["PAYROLL_UNCLASSIFIED_DEDUCTIONS"] = os.getenv("PAYROLL_UNCLASSIFIED_DEDUCTIONS", "exclude")
    app.config["PAYROLL_BATCH_WORKERS"] = os.getenv("PAYROLL_BATCH_WORKERS", "0")

    # Try loading external config, but don't crash if missing
    if config_object:
        try:
            app.config.from_object(config_object)
        except ImportError as e:
            # Just log and continue with defaults
            app.logger.warning("Could not import config object %r: %s", config_object, e)

    if test_config:
        app.config.update(test_config)

    # Policy is validated here; an invalid one stops start-up
    init_engine(app)

    app.cli.add_command(payroll_cli)
    return app


# ----------------- CLI COMMANDS -----------------

def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


@payroll_cli.command("check-policy")
def check_policy():
    """Print the active attendance policy and payroll settings."""
    engine = current_engine()
    _echo_json({
        "attendance_policy": engine.attendance_policy.to_dict(),
        "unclassified_deductions": engine.pay_policy.unclassified_deductions.value,
        "batch_workers": engine.pay_policy.batch_workers,
    })


@payroll_cli.command("classify")
@click.option("--date", "work_date", default=None, help="YYYY-MM-DD (default: today)")
@click.option("--check-in", default=None, help="HH:MM")
@click.option("--check-out", default=None, help="HH:MM")
@click.option("--break-minutes", default=0, type=int)
@click.option("--day-type", default="working", type=click.Choice(["working", "weekend", "holiday"]))
def classify_day(work_date, check_in, check_out, break_minutes, day_type):
    """Classify a single attendance day."""
    from datetime import date
    from hrms_payroll.common.payload import day_from_dict

    try:
        day = day_from_dict({
            "date": work_date or date.today().isoformat(),
            "check_in": check_in,
            "check_out": check_out,
            "break_minutes": break_minutes,
            "day_type": day_type,
        })
        rec = current_engine().classify(day)
    except PayrollError as e:
        raise click.ClickException(f"{e.code}: {e.message}")
    _echo_json(rec.to_dict())


@payroll_cli.command("compute")
@click.argument("payload", type=click.File("r"))
def compute(payload):
    """
    Compute payroll from a JSON file holding one employee object or a list.

    An employee with "attendance_days" gets its attendance aggregate derived
    from those days with the active policy; proration warnings (open days,
    unusable base salary) are merged into that employee's payroll warnings.
    """
    from hrms_payroll.common.payload import day_from_dict, input_from_dict

    try:
        data = json.load(payload)
    except ValueError as e:
        raise click.ClickException(f"PAYLOAD_INVALID: {e}")

    single = isinstance(data, dict)
    rows = [data] if single else data
    if not isinstance(rows, list):
        raise click.ClickException("PAYLOAD_INVALID: expected an object or a list")

    engine = current_engine()
    try:
        inputs, summaries = [], []
        for row in rows:
            summary = None
            days = row.get("attendance_days") if isinstance(row, dict) else None
            if days:
                summary = engine.prorate(
                    row.get("base_salary"),
                    [day_from_dict(x, i) for i, x in enumerate(days)],
                    employee_id=row.get("employee_id"),
                )
            inputs.append(input_from_dict(row, summary.to_aggregate() if summary else None))
            summaries.append(summary)
        results = engine.compute_batch(inputs)
    except PayrollError as e:
        raise click.ClickException(f"{e.code}: {e.message}")

    out = []
    for res, summary in zip(results, summaries):
        item = res.to_dict()
        if summary is not None:
            item["attendance_summary"] = summary.to_dict()
        out.append(item)
    _echo_json(out[0] if single else out)
