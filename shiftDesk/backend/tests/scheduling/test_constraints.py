"""
Tests for constraint validation.
Pure domain objects, no database.
"""
import pytest
from datetime import date, datetime, timezone

from app.services.scheduling.constraints import (
    ValidationRules,
    effective_role_bounds,
    has_hard_conflicts,
    validate_shifts,
)
from app.services.scheduling.types import (
    BureauSettings,
    ConflictSeverity,
    ConflictType,
    RoleRequirement,
    SchedulePeriod,
    Shift,
    ShiftRole,
)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    # January 2025 in UTC; the 13th is a Monday
    return datetime(2025, 1, day, hour, minute, tzinfo=timezone.utc)


def of_type(conflicts, conflict_type):
    return [c for c in conflicts if c.type == conflict_type]


class TestDoubleBooking:

    def test_overlap_is_one_hard_conflict_without_rest_violation(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 9), at(13, 17), [1]),
            make_shift("b", at(13, 16), at(13, 23), [1]),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome])

        doubles = of_type(conflicts, ConflictType.DOUBLE_BOOKING)
        assert len(doubles) == 1
        assert doubles[0].severity == ConflictSeverity.HARD
        assert doubles[0].shift_keys == ("a", "b")
        assert doubles[0].employee_id == 1
        assert of_type(conflicts, ConflictType.REST_PERIOD_VIOLATION) == []

    def test_back_to_back_is_not_an_overlap(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 9), at(13, 17), [1]),
            make_shift("b", at(13, 17), at(13, 23), [1]),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome])

        assert of_type(conflicts, ConflictType.DOUBLE_BOOKING) == []
        rest = of_type(conflicts, ConflictType.REST_PERIOD_VIOLATION)
        assert len(rest) == 1
        assert rest[0].severity == ConflictSeverity.HARD

    def test_declined_assignment_is_ignored(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 9), at(13, 17), [1]),
            make_shift("b", at(13, 16), at(13, 23), [1], declined=(1,)),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome])
        assert of_type(conflicts, ConflictType.DOUBLE_BOOKING) == []

    def test_each_overlapping_pair_reported(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 8), at(13, 16), [1]),
            make_shift("b", at(13, 9), at(13, 17), [1]),
            make_shift("c", at(13, 10), at(13, 18), [1]),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome])

        pairs = [c.shift_keys for c in of_type(conflicts, ConflictType.DOUBLE_BOOKING)]
        assert pairs == [("a", "b"), ("a", "c"), ("b", "c")]


class TestRestPeriods:

    def test_short_gap_is_hard(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 6), at(13, 14), [1]),
            make_shift("b", at(13, 20), at(14, 4), [1]),
        ]
        rest = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.REST_PERIOD_VIOLATION)

        assert len(rest) == 1
        assert rest[0].severity == ConflictSeverity.HARD
        assert rest[0].details["hours_between"] == 6.0
        assert rest[0].details["minimum_required"] == 11.0

    def test_gap_between_hard_and_minimum_is_soft(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 6), at(13, 14), [1]),
            make_shift("b", at(14, 0), at(14, 8), [1]),
        ]
        rest = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.REST_PERIOD_VIOLATION)

        assert len(rest) == 1
        assert rest[0].severity == ConflictSeverity.SOFT

    def test_enough_rest_is_fine(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 6), at(13, 14), [1]),
            make_shift("b", at(14, 2), at(14, 10), [1]),
        ]
        rest = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.REST_PERIOD_VIOLATION)
        assert rest == []

    def test_thresholds_come_from_rules(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 6), at(13, 14), [1]),
            make_shift("b", at(14, 0), at(14, 8), [1]),
        ]
        rules = ValidationRules(min_rest_hours=9.0, hard_rest_hours=6.0)
        rest = of_type(validate_shifts(shifts, roster, [milan, rome], rules=rules), ConflictType.REST_PERIOD_VIOLATION)
        assert rest == []

    def test_gap_measured_from_latest_end(self, make_shift, roster, milan, rome):
        # b sits inside a; c follows a after only 2h
        shifts = [
            make_shift("a", at(13, 7), at(13, 15), [1]),
            make_shift("b", at(13, 8), at(13, 9), [1]),
            make_shift("c", at(13, 17), at(13, 20), [1]),
        ]
        rest = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.REST_PERIOD_VIOLATION)

        assert len(rest) == 1
        assert rest[0].shift_keys == ("a", "c")
        assert rest[0].severity == ConflictSeverity.HARD
        assert rest[0].details["hours_between"] == 2.0


class TestCoverage:

    def test_understaffed_shift_is_hard(self, make_shift, roster, milan, rome):
        shifts = [make_shift("a", at(13, 7), at(13, 15), [1], required_staff=2)]
        coverage = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.INSUFFICIENT_COVERAGE)

        assert len(coverage) == 1
        assert coverage[0].severity == ConflictSeverity.HARD
        assert coverage[0].details == {"required": 2, "actual": 1}

    def test_declined_assignment_does_not_count(self, make_shift, roster, milan, rome):
        shifts = [make_shift("a", at(13, 7), at(13, 15), [1], declined=(1,))]
        coverage = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.INSUFFICIENT_COVERAGE)

        assert len(coverage) == 1
        assert coverage[0].details["actual"] == 0

    def test_unknown_employee_still_counts_towards_coverage(self, make_shift, roster, milan, rome):
        shifts = [make_shift("a", at(13, 7), at(13, 15), [99])]
        coverage = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.INSUFFICIENT_COVERAGE)
        assert coverage == []


class TestRoleBalance:

    def test_juniors_only_shift_is_missing_a_senior(self, make_shift, roster, milan, rome):
        # Milan needs one senior per shift; two juniors fill the headcount but not the role
        shifts = [make_shift("a", at(13, 7), at(13, 15), [2, 3], required_staff=2)]
        conflicts = validate_shifts(shifts, roster, [milan, rome])

        roles = of_type(conflicts, ConflictType.ROLE_IMBALANCE)
        assert len(roles) == 1
        assert roles[0].severity == ConflictSeverity.HARD
        assert roles[0].details["role"] == "senior"
        assert of_type(conflicts, ConflictType.INSUFFICIENT_COVERAGE) == []
        assert len(of_type(conflicts, ConflictType.SKILL_GAP)) == 1

    def test_too_many_juniors_is_soft(self, make_shift, roster, milan, rome):
        milan.settings = BureauSettings(max_junior_per_shift=1)
        shifts = [make_shift("a", at(13, 7), at(13, 15), [1, 2, 3], required_staff=3)]
        roles = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.ROLE_IMBALANCE)

        assert len(roles) == 1
        assert roles[0].severity == ConflictSeverity.SOFT
        assert roles[0].details["role"] == "junior"
        assert roles[0].details["max_count"] == 1

    def test_required_lead_missing_is_hard(self, make_shift, roster, milan, rome):
        milan.settings = BureauSettings(require_lead=True)
        shifts = [make_shift("a", at(13, 7), at(13, 15), [1])]
        roles = of_type(validate_shifts(shifts, roster, [milan, rome]), ConflictType.ROLE_IMBALANCE)

        assert [(c.severity, c.details["role"]) for c in roles] == [(ConflictSeverity.HARD, "lead")]

    def test_shift_requirements_merge_with_bureau_settings(self, make_shift):
        shift = make_shift(
            "a", at(13, 7), at(13, 15),
            role_requirements=[
                RoleRequirement(role=ShiftRole.SENIOR, min_count=2),
                RoleRequirement(role=ShiftRole.JUNIOR, min_count=0, max_count=5),
            ],
        )
        bounds = effective_role_bounds(shift, BureauSettings(min_senior_per_shift=1, max_junior_per_shift=3))

        assert bounds[ShiftRole.SENIOR] == (2, None)
        assert bounds[ShiftRole.JUNIOR] == (0, 3)
        assert ShiftRole.LEAD not in bounds


class TestPreferences:

    def test_unavailable_and_non_preferred_day_use_local_date(self, make_shift, picky_roster, milan, rome):
        # 23:30 UTC on the 14th is 00:30 on Wednesday the 15th in Milan
        shifts = [make_shift("a", at(14, 23, 30), at(15, 7, 30), [1])]
        prefs = of_type(validate_shifts(shifts, picky_roster, [milan, rome]), ConflictType.PREFERENCE_VIOLATION)

        assert len(prefs) == 2
        assert all(c.severity == ConflictSeverity.SOFT for c in prefs)
        assert prefs[0].details == {"date": "2025-01-15"}
        assert prefs[1].details["day"] == 2

    def test_preferred_day_has_no_violation(self, make_shift, picky_roster, milan, rome):
        shifts = [make_shift("a", at(13, 7), at(13, 15), [1])]
        prefs = of_type(validate_shifts(shifts, picky_roster, [milan, rome]), ConflictType.PREFERENCE_VIOLATION)
        assert prefs == []


class TestOvertime:

    def _three_days(self, make_shift):
        return [
            make_shift("a", at(13, 7), at(13, 15), [1]),
            make_shift("b", at(14, 7), at(14, 15), [1]),
            make_shift("c", at(15, 7), at(15, 15), [1]),
        ]

    def test_over_weekly_limit_is_soft(self, make_shift, picky_roster, milan, rome):
        period = SchedulePeriod(date(2025, 1, 13), date(2025, 1, 19))
        overtime = of_type(
            validate_shifts(self._three_days(make_shift), picky_roster, [milan, rome], period=period),
            ConflictType.OVERTIME_RISK,
        )

        assert len(overtime) == 1
        assert overtime[0].severity == ConflictSeverity.SOFT
        assert overtime[0].shift_keys == ("a", "b", "c")
        assert overtime[0].details["shift_count"] == 3
        assert overtime[0].details["allowed_in_period"] == 2

    def test_limit_scales_with_period_length(self, make_shift, picky_roster, milan, rome):
        period = SchedulePeriod(date(2025, 1, 13), date(2025, 1, 26))
        overtime = of_type(
            validate_shifts(self._three_days(make_shift), picky_roster, [milan, rome], period=period),
            ConflictType.OVERTIME_RISK,
        )
        assert overtime == []

    def test_only_shifts_inside_period_count(self, make_shift, picky_roster, milan, rome):
        period = SchedulePeriod(date(2025, 1, 13), date(2025, 1, 13))
        overtime = of_type(
            validate_shifts(self._three_days(make_shift), picky_roster, [milan, rome], period=period),
            ConflictType.OVERTIME_RISK,
        )
        assert overtime == []


class TestValidateOrdering:

    def _mixed(self, make_shift):
        return [
            make_shift("a", at(13, 9), at(13, 17), [1]),
            make_shift("b", at(13, 16), at(13, 23), [1]),
            make_shift("c", at(13, 7), at(13, 15), [2], required_staff=2),
        ]

    def test_conflicts_grouped_in_check_order(self, make_shift, roster, milan, rome):
        conflicts = validate_shifts(self._mixed(make_shift), roster, [milan, rome])

        assert [c.type for c in conflicts] == [
            ConflictType.DOUBLE_BOOKING,
            ConflictType.INSUFFICIENT_COVERAGE,
            ConflictType.ROLE_IMBALANCE,
            ConflictType.SKILL_GAP,
            ConflictType.OVERTIME_RISK,
        ]

    def test_validation_is_repeatable(self, make_shift, roster, milan, rome):
        shifts = self._mixed(make_shift)
        first = validate_shifts(shifts, roster, [milan, rome])
        second = validate_shifts(shifts, roster, [milan, rome])
        reversed_input = validate_shifts(list(reversed(shifts)), roster, [milan, rome])

        assert first == second
        assert first == reversed_input

    def test_only_shift_keys_filters_to_new_shifts(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("db-1", at(13, 9), at(13, 17), [1]),
            make_shift("db-2", at(13, 7), at(13, 15), [2, 3], required_staff=2),
            make_shift("new-1", at(13, 16), at(13, 23), [1]),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome], only_shift_keys={"new-1"})

        assert conflicts
        assert all("new-1" in c.shift_keys for c in conflicts)
        assert len(of_type(conflicts, ConflictType.DOUBLE_BOOKING)) == 1
        assert has_hard_conflicts(conflicts)

    def test_clean_schedule_has_no_conflicts(self, make_shift, roster, milan, rome):
        shifts = [
            make_shift("a", at(13, 7), at(13, 15), [1, 2], required_staff=2),
            make_shift("b", at(14, 7), at(14, 15), [1, 3], required_staff=2),
        ]
        conflicts = validate_shifts(shifts, roster, [milan, rome])

        assert conflicts == []
        assert not has_hard_conflicts(conflicts)


class TestDomainTypes:

    def test_shift_must_start_before_it_ends(self):
        with pytest.raises(ValueError):
            Shift(key="x", bureau_id=1, start_time=at(13, 9), end_time=at(13, 9))

    def test_period_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            SchedulePeriod(date(2025, 1, 20), date(2025, 1, 13))

    def test_period_days_inclusive(self):
        period = SchedulePeriod(date(2025, 1, 13), date(2025, 1, 19))
        assert period.days == 7
        assert period.dates()[-1] == date(2025, 1, 19)
