"""
JSON output schema for AI-generated schedules.
Defines the structure the LLM must return. Included in the system prompt so the
model knows what to produce; the response parser enforces the same shape.
"""

# Day mapping included in prompts for LLM reference
DAY_MAP = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

# Local shift windows (start hour, end hour) by shift type
SHIFT_TYPES = {
    "Morning": ("08:00", "16:00"),
    "Afternoon": ("16:00", "00:00"),
    "Night": ("00:00", "08:00"),
}

ROLE_LEVELS = ["lead", "senior", "junior", "support"]

SCHEDULE_OUTPUT_SCHEMA = {
    "description": "A complete shift schedule for the requested period and bureau",
    "schema": {
        "shifts": [
            {
                "date": "YYYY-MM-DD - local date the shift starts",
                "start_time": "HH:MM 24-hour, bureau local time",
                "end_time": "HH:MM 24-hour, bureau local time (00:00 means midnight at the end of the day)",
                "bureau": "Milan | Rome",
                "employee_id": "int - id from the roster, never guess",
                "assigned_to": "Employee full name exactly as in the roster",
                "role_level": " | ".join(ROLE_LEVELS),
                "shift_type": " | ".join(SHIFT_TYPES),
                "reasoning": "Ultra-brief code, max 10 chars (e.g. Sr-cover, Fair-rot)",
                "required_staff": "int or null - people needed on this shift (optional)",
            }
        ],
        "fairness_metrics": {
            "weekend_shifts_per_person": {"Employee Name": "int"},
            "night_shifts_per_person": {"Employee Name": "int"},
            "total_shifts_per_person": {"Employee Name": "int"},
            "preference_satisfaction_rate": "float 0.0-1.0",
            "hard_constraint_violations": ["string"],
        },
        "recommendations": ["Specific actionable suggestion"],
    },
    "examples": [
        {
            "input": "Two people on the Milan morning shift, one senior and one junior",
            "output": {
                "shifts": [
                    {
                        "date": "2025-01-13", "start_time": "08:00", "end_time": "16:00",
                        "bureau": "Milan", "employee_id": 3, "assigned_to": "Marco Rossi",
                        "role_level": "senior", "shift_type": "Morning", "reasoning": "Sr-cover",
                        "required_staff": 2,
                    },
                    {
                        "date": "2025-01-13", "start_time": "08:00", "end_time": "16:00",
                        "bureau": "Milan", "employee_id": 7, "assigned_to": "Sara Bianchi",
                        "role_level": "junior", "shift_type": "Morning", "reasoning": "Pref-day",
                        "required_staff": 2,
                    },
                ],
                "fairness_metrics": {
                    "weekend_shifts_per_person": {},
                    "night_shifts_per_person": {},
                    "total_shifts_per_person": {"Marco Rossi": 1, "Sara Bianchi": 1},
                    "preference_satisfaction_rate": 1.0,
                    "hard_constraint_violations": [],
                },
                "recommendations": [],
            },
        },
    ],
}


def get_shift_type(start_hour: int) -> str:
    """Classify a shift by its local start hour."""
    if 8 <= start_hour < 16:
        return "Morning"
    if start_hour >= 16:
        return "Afternoon"
    return "Night"
