"""
Parses raw model output into domain shifts and assignments.

Extraction accepts a raw JSON object, a fenced ```json block or an object
embedded in surrounding text. The extracted object is validated against a
strict schema (unknown fields rejected) and checked against the roster.
Any failure raises ParseError; partial results are never returned.
"""

import json
import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from app.services.errors import ParseError
from app.services.scheduling.types import (
    BOTH_BUREAUS,
    Assignment,
    Bureau,
    GeneratedSchedule,
    ScheduleContext,
    SchedulePeriod,
    Shift,
)

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
CONVERSATIONAL = re.compile(
    r"^(I|Let me|I'll|I can|I would|I need|To create|Before|What|Which|How|Could you|Can you|"
    r"Would you|Thank you|Here's|Here is|Based on|Looking at)\b",
    re.IGNORECASE,
)
TIME_PATTERN = r"^(?:[01]\d|2[0-3]):[0-5]\d$|^24:00$"
MAX_ROWS_PER_DAY = 24


class ShiftRow(BaseModel):
    """One employee on one shift, as emitted by the model."""
    model_config = ConfigDict(extra="forbid")

    date: date
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    bureau: str
    employee_id: StrictInt
    assigned_to: str
    role_level: Literal["lead", "senior", "junior", "support"]
    shift_type: Literal["Morning", "Afternoon", "Night"]
    reasoning: str
    required_staff: Optional[StrictInt] = Field(default=None, ge=1)

    @field_validator("date", mode="before")
    @classmethod
    def iso_date(cls, value):
        if not isinstance(value, str):
            raise ValueError("date must be an ISO date string")
        return date.fromisoformat(value)


class FairnessMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid")

    weekend_shifts_per_person: dict[str, StrictInt] = Field(default_factory=dict)
    night_shifts_per_person: dict[str, StrictInt] = Field(default_factory=dict)
    total_shifts_per_person: dict[str, StrictInt] = Field(default_factory=dict)
    preference_satisfaction_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    hard_constraint_violations: list[str] = Field(default_factory=list)


class ScheduleOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    shifts: list[ShiftRow] = Field(min_length=1)
    fairness_metrics: FairnessMetrics = Field(default_factory=FairnessMetrics)
    recommendations: list[str] = Field(default_factory=list)


def extract_json(raw: str) -> dict:
    """Pull the JSON object out of a model response."""
    text = (raw or "").strip()
    if not text:
        raise ParseError("AI returned an empty response")

    if text.startswith("{"):
        candidate = text[:text.rindex("}") + 1] if "}" in text else text
    else:
        fenced = FENCED_JSON.search(text)
        if fenced:
            candidate = fenced.group(1)
        elif "{" in text and "}" in text:
            candidate = text[text.index("{"):text.rindex("}") + 1]
        elif CONVERSATIONAL.match(text):
            raise ParseError("AI returned a conversational reply instead of JSON")
        else:
            raise ParseError("No JSON object found in AI response")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        if not text.rstrip().endswith("}"):
            raise ParseError(f"AI response is not valid JSON (possibly truncated): {e.msg}") from e
        raise ParseError(f"AI response is not valid JSON: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise ParseError("AI response JSON is not an object")
    return parsed


def _describe_validation_error(e: ValidationError) -> str:
    first = e.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{e.error_count()} schema error(s), first at {location}: {first['msg']}"


def _parse_time(value: str) -> time:
    if value == "24:00":
        return time(0, 0)
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def local_window_to_utc(
    shift_date: date,
    start_time: str,
    end_time: str,
    bureau: Bureau,
) -> tuple[datetime, datetime]:
    """
    Convert a local HH:MM window on a date to UTC.
    End of 00:00/24:00, or an end not after the start, rolls over to the next day.
    """
    tz = ZoneInfo(bureau.timezone)
    start_local = datetime.combine(shift_date, _parse_time(start_time), tzinfo=tz)
    end_local = datetime.combine(shift_date, _parse_time(end_time), tzinfo=tz)
    if end_time in ("00:00", "24:00") or end_local <= start_local:
        end_local = datetime.combine(shift_date + timedelta(days=1), _parse_time(end_time), tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def _resolve_bureau(row: ShiftRow, context: ScheduleContext, bureau_scope: str, index: int) -> Bureau:
    bureau = context.bureau_by_name(row.bureau)
    in_scope = bureau_scope == BOTH_BUREAUS or row.bureau.lower() == bureau_scope.lower()
    if bureau is None or not in_scope:
        raise ParseError(f"Shift {index}: bureau '{row.bureau}' is not in scope '{bureau_scope}'")
    return bureau


def parse_schedule_response(
    raw: str,
    context: ScheduleContext,
    period: SchedulePeriod,
    bureau_scope: str,
) -> GeneratedSchedule:
    """
    Parse one model response into a GeneratedSchedule (conflicts not yet computed).

    Rows sharing bureau, date, start and end become one Shift carrying one
    assignment per row.
    """
    data = extract_json(raw)
    try:
        output = ScheduleOutput.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"AI response does not match the schedule schema: {_describe_validation_error(e)}") from e

    max_rows = period.days * MAX_ROWS_PER_DAY
    if len(output.shifts) > max_rows:
        raise ParseError(f"AI returned {len(output.shifts)} shift rows, more than the limit of {max_rows}")

    rosters = {b.id: {e.id for e in context.employees_for_bureau(b.id)} for b in context.bureaus}
    groups: dict[tuple, list[ShiftRow]] = {}
    group_bureaus: dict[tuple, Bureau] = {}

    for index, row in enumerate(output.shifts):
        bureau = _resolve_bureau(row, context, bureau_scope, index)
        if not period.start_date <= row.date <= period.end_date:
            raise ParseError(f"Shift {index}: date {row.date.isoformat()} is outside the requested period")
        if row.employee_id not in rosters[bureau.id]:
            raise ParseError(f"Shift {index}: employee {row.employee_id} is not on the {bureau.name} roster")

        group_key = (bureau.id, row.date, row.start_time, row.end_time)
        rows = groups.setdefault(group_key, [])
        if any(r.employee_id == row.employee_id for r in rows):
            raise ParseError(f"Shift {index}: employee {row.employee_id} is assigned twice to the same shift")
        rows.append(row)
        group_bureaus[group_key] = bureau

    shifts = []
    counters: dict[int, int] = {}
    for group_key, rows in groups.items():
        bureau = group_bureaus[group_key]
        _, shift_date, start_time, end_time = group_key
        start_utc, end_utc = local_window_to_utc(shift_date, start_time, end_time, bureau)

        counters[bureau.id] = counters.get(bureau.id, 0) + 1
        key = f"new-{bureau.code.lower()}-{counters[bureau.id]}"
        requested = [r.required_staff for r in rows if r.required_staff is not None]

        shifts.append(Shift(
            key=key,
            bureau_id=bureau.id,
            start_time=start_utc,
            end_time=end_utc,
            required_staff=max(requested) if requested else len(rows),
            shift_type=rows[0].shift_type,
            assignments=[
                Assignment(shift_key=key, employee_id=r.employee_id, notes=r.reasoning)
                for r in rows
            ],
        ))

    logger.info(f"Parsed {len(output.shifts)} rows into {len(shifts)} shifts for {bureau_scope}")

    return GeneratedSchedule(
        period=period,
        bureau_scope=bureau_scope,
        shifts=shifts,
        recommendations=output.recommendations,
        fairness_metrics=output.fairness_metrics.model_dump(),
    )
