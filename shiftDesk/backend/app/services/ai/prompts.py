"""
Prompt construction for schedule generation.
Builds system and user prompts with roster context and the output schema.
"""

import json
from zoneinfo import ZoneInfo

from app.services.scheduling.constraints import ValidationRules, local_date
from app.services.scheduling.holidays import italian_holidays
from app.services.scheduling.types import Bureau, ScheduleContext, ShiftRole

from .schedule_schema import DAY_MAP, SCHEDULE_OUTPUT_SCHEMA, SHIFT_TYPES, get_shift_type

WEEKDAY_BY_NUMBER = {v: k.capitalize() for k, v in DAY_MAP.items()}


def build_system_prompt(rules: ValidationRules) -> str:
    """Build system prompt with hard constraints, role definitions and the output schema."""

    shift_lines = "\n".join(
        f"- **{name}**: {start} - {end}" for name, (start, end) in SHIFT_TYPES.items()
    )
    schema = SCHEDULE_OUTPUT_SCHEMA
    examples_text = ""
    for ex in schema["examples"]:
        examples_text += f"  Request: \"{ex['input']}\"\n"
        examples_text += f"  Output: {json.dumps(ex['output'])}\n"

    return f"""YOU ARE A JSON API, NOT A CONVERSATIONAL ASSISTANT.
Output ONLY the raw JSON object. Start with {{ and end with }}.
Do not ask questions, do not explain, do not wrap the JSON in markdown.

You are the scheduling agent for a breaking news desk with bureaus in Milan and Rome.
Generate fair, compliant shift schedules that respect hard constraints and optimise soft preferences.

HARD CONSTRAINTS (never violate):
1. No double booking: an employee cannot hold overlapping shifts.
2. Rest period: at least {rules.min_rest_hours:g} hours between the end of one shift and the start of the next.
3. Seniority: every shift meets its bureau's min_senior_per_shift (seniors only) and max_junior_per_shift, and has a lead when require_lead is true. Never juniors alone.
4. Bureau: employees only work in their own bureau.
5. Unavailable dates (including approved leave) are never scheduled.
6. Respect each employee's max shifts per week.

SOFT PREFERENCES (in priority order):
1. Preferred days and preferred shift types. CONFIRMED preferences outrank PENDING ones.
2. Fair rotation of nights, weekends and holidays, using recent history.
3. Similar number of shifts per person over the period.

ROLE LEVELS: {", ".join(r.value for r in ShiftRole)}. Leads and seniors can supervise a shift.

SHIFT TYPES (bureau local time):
{shift_lines}
Each day needs 24/7 coverage (3 shifts). On holidays at least Morning and Afternoon.
If staff is short, prioritise Morning > Afternoon > Night.

Day mapping: {json.dumps(DAY_MAP)}
Times are HH:MM 24-hour format. An end_time of 00:00 means midnight at the end of the shift's date.
Use employee_id and names exactly as given in the roster, never guess.
Emit one row per employee per shift; people sharing a shift repeat the same date, times and bureau.

OUTPUT SCHEMA:
Description: {schema['description']}
```json
{json.dumps(schema['schema'], indent=2)}
```
Examples:
{examples_text}
First character of your response: {{
Last character of your response: }}"""


def build_roster_context(
    context: ScheduleContext,
    bureau: Bureau,
    preserve_existing: bool,
) -> dict:
    """Collect the period, roster, holidays and existing commitments for one bureau."""
    period = context.period
    employees = []
    for emp in context.employees_for_bureau(bureau.id):
        prefs = emp.preferences
        employees.append({
            "employee_id": emp.id,
            "full_name": emp.full_name,
            "title": emp.title,
            "role_level": emp.shift_role.value,
            "preferences": {
                "status": "CONFIRMED" if prefs.confirmed else "PENDING",
                "preferred_days": [WEEKDAY_BY_NUMBER[d] for d in prefs.preferred_days],
                "preferred_shifts": prefs.preferred_shifts,
                "unavailable_dates": sorted(
                    d.isoformat() for d in prefs.unavailable_dates
                    if period.start_date <= d <= period.end_date
                ),
                "max_shifts_per_week": prefs.max_shifts_per_week,
                "notes": prefs.notes or None,
            },
            "recent_history": {
                "weekend_shifts_last_month": emp.recent_history.weekend_shifts,
                "night_shifts_last_month": emp.recent_history.night_shifts,
                "total_shifts_last_month": emp.recent_history.total_shifts,
            },
        })

    existing = []
    if preserve_existing:
        names = {e.id: e.full_name for e in context.employees}
        tz = ZoneInfo(bureau.timezone)
        for shift in context.existing_shifts:
            if shift.bureau_id != bureau.id:
                continue
            start_local = shift.start_time.astimezone(tz)
            for a in shift.active_assignments:
                existing.append({
                    "date": local_date(shift, bureau).isoformat(),
                    "start_time": start_local.strftime("%H:%M"),
                    "end_time": shift.end_time.astimezone(tz).strftime("%H:%M"),
                    "employee_id": a.employee_id,
                    "employee_name": names.get(a.employee_id, f"Employee {a.employee_id}"),
                    "shift_type": get_shift_type(start_local.hour),
                })

    return {
        "period": period.to_dict(),
        "bureau": {
            "name": bureau.name,
            "timezone": bureau.timezone,
            "min_senior_per_shift": bureau.settings.min_senior_per_shift,
            "max_junior_per_shift": bureau.settings.max_junior_per_shift,
            "require_lead": bureau.settings.require_lead,
        },
        "employees": employees,
        "holidays": {
            d.isoformat(): name
            for d, name in italian_holidays(period.start_date, period.end_date).items()
        },
        "existing_shifts": existing,
    }


def build_user_prompt(roster_context: dict) -> str:
    """Build user prompt with the period and roster context."""

    period = roster_context["period"]
    bureau = roster_context["bureau"]["name"]
    context_str = json.dumps(roster_context, indent=2, default=str)

    return f"""Generate a schedule for the {bureau} bureau from {period['start_date']} to {period['end_date']} ({period['type']}).
There are {len(roster_context['employees'])} employees on the roster.
Existing shifts listed in the context are already committed: do not modify them and do not double book around them.

Context:
{context_str}

Respond with JSON only."""
