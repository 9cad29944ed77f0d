"""
Schedule generator - main orchestration layer.
Loads roster context, prompts the model per bureau, parses and validates the result.
Nothing is written to the database here; saving is a separate step.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.errors import GenerationError, ParseError
from app.services.scheduling.constraints import ValidationRules, validate_shifts
from app.services.scheduling.data_loader import load_schedule_context
from app.services.scheduling.types import Bureau, GeneratedSchedule, ScheduleContext, SchedulePeriod

from .failure_recorder import FailureRecord, FailureRecorder
from .llm_provider import BaseLLMProvider, LLMResponse, get_llm_provider
from .prompts import build_roster_context, build_system_prompt, build_user_prompt
from .response_parser import parse_schedule_response


logger = logging.getLogger(__name__)


def generate_schedule(
    db: Session,
    period: SchedulePeriod,
    bureau_scope: str,
    preserve_existing: bool,
    recorder: FailureRecorder,
    provider: Optional[BaseLLMProvider] = None,
    rules: Optional[ValidationRules] = None,
) -> GeneratedSchedule:
    """
    Main entry point. Generates a schedule proposal for a period and bureau scope.

    Flow:
    1. Resolve the LLM provider (fails fast when not configured)
    2. Load roster, preferences, history and existing shifts from DB
    3. Build prompts, one user prompt per bureau
    4. Call LLM (bureaus in parallel for scope 'both')
    5. Parse each response into shifts and assignments
    6. Validate generated shifts against existing ones

    Raises NotConfiguredError, GenerationError or ParseError. Each failed
    attempt is recorded exactly once in the recorder.
    """
    # 1. Provider
    if provider is None:
        provider = get_llm_provider()
    rules = rules or ValidationRules.from_settings(settings)
    attempt_id = uuid.uuid4().hex

    # 2. Context
    context = load_schedule_context(db, period, bureau_scope)
    if not context.bureaus:
        raise GenerationError(f"Unknown bureau: {bureau_scope}")
    for bureau in context.bureaus:
        if not context.employees_for_bureau(bureau.id):
            raise GenerationError(f"No active employees found in {bureau.name}")

    request_config = {
        "period": period.to_dict(),
        "bureau": bureau_scope,
        "employee_count": len(context.employees),
        "existing_shift_count": len(context.existing_shifts),
        "model": provider.provider_name(),
    }

    # 3. Prompts
    system_prompt = build_system_prompt(rules)
    user_prompts = [
        build_user_prompt(build_roster_context(context, bureau, preserve_existing))
        for bureau in context.bureaus
    ]
    logger.info(
        f"Generating schedule {attempt_id} for {bureau_scope} "
        f"{period.start_date} to {period.end_date}: {len(context.employees)} employees, "
        f"{len(context.existing_shifts)} existing shifts, "
        f"prompt sizes {[len(system_prompt) + len(p) for p in user_prompts]}"
    )

    # 4. Call LLM
    responses = _call_provider(provider, system_prompt, user_prompts, attempt_id, recorder, request_config)

    # 5. Parse
    parsed = []
    for bureau, response in zip(context.bureaus, responses):
        try:
            parsed.append(parse_schedule_response(response.raw_text, context, period, bureau.name))
        except ParseError as e:
            logger.warning(f"Failed to parse response for {bureau.name} ({attempt_id}): {e}")
            recorder.record(FailureRecord.from_response(
                attempt_id, str(e), response.raw_text, {**request_config, "bureau": bureau.name},
            ))
            raise

    schedule = _merge(period, bureau_scope, parsed, context.bureaus)
    schedule.existing_shift_count = len(context.existing_shifts)
    schedule.model_used = responses[0].model_used

    # 6. Validate
    schedule.conflicts = validate_against_existing(schedule, context, rules)
    logger.info(
        f"Generated {len(schedule.shifts)} shifts with {len(schedule.conflicts)} conflicts "
        f"({len(schedule.hard_conflicts)} hard) for {attempt_id}"
    )
    return schedule


def _call_provider(
    provider: BaseLLMProvider,
    system_prompt: str,
    user_prompts: list[str],
    attempt_id: str,
    recorder: FailureRecorder,
    request_config: dict,
) -> list[LLMResponse]:
    def call(user_prompt: str) -> LLMResponse:
        return provider.generate(system_prompt, user_prompt, settings.LLM_MAX_TOKENS)

    try:
        if len(user_prompts) == 1:
            responses = [call(user_prompts[0])]
        else:
            with ThreadPoolExecutor(max_workers=len(user_prompts)) as pool:
                responses = list(pool.map(call, user_prompts))
    except Exception as e:
        logger.exception(f"LLM provider raised during {attempt_id}")
        recorder.record(FailureRecord.from_response(attempt_id, repr(e), None, request_config))
        raise GenerationError("AI schedule generation failed. Please try again.") from e

    for response in responses:
        logger.info(f"LLM response for {attempt_id}: success={response.success}, length={len(response.raw_text)}")
        if not response.success:
            recorder.record(FailureRecord.from_response(
                attempt_id, response.error or "Unknown LLM error", response.raw_text, request_config,
            ))
            raise GenerationError(response.error or "AI schedule generation failed. Please try again.")
    return responses


def _merge(
    period: SchedulePeriod,
    bureau_scope: str,
    parsed: list[GeneratedSchedule],
    bureaus: list[Bureau],
) -> GeneratedSchedule:
    """Combine per-bureau results into one schedule."""
    if len(parsed) == 1:
        single = parsed[0]
        single.bureau_scope = bureau_scope
        return single

    shifts = [s for p in parsed for s in p.shifts]
    recommendations = [
        f"{bureau.name}: {rec}" for bureau, p in zip(bureaus, parsed) for rec in p.recommendations
    ]

    fairness = {
        "weekend_shifts_per_person": {},
        "night_shifts_per_person": {},
        "total_shifts_per_person": {},
        "preference_satisfaction_rate": 0.0,
        "hard_constraint_violations": [],
    }
    weighted_rate = 0.0
    for p in parsed:
        metrics = p.fairness_metrics
        for key in ("weekend_shifts_per_person", "night_shifts_per_person", "total_shifts_per_person"):
            fairness[key].update(metrics.get(key, {}))
        fairness["hard_constraint_violations"].extend(metrics.get("hard_constraint_violations", []))
        weighted_rate += metrics.get("preference_satisfaction_rate", 0.0) * len(p.assignments)
    total_assignments = sum(len(p.assignments) for p in parsed)
    if total_assignments:
        fairness["preference_satisfaction_rate"] = round(weighted_rate / total_assignments, 3)

    return GeneratedSchedule(
        period=period,
        bureau_scope=bureau_scope,
        shifts=shifts,
        recommendations=recommendations,
        fairness_metrics=fairness,
    )


def validate_against_existing(
    schedule: GeneratedSchedule,
    context: ScheduleContext,
    rules: ValidationRules,
) -> list:
    """Conflicts touching the generated shifts, checked together with already-saved shifts."""
    new_keys = {s.key for s in schedule.shifts}
    return validate_shifts(
        context.existing_shifts + schedule.shifts,
        context.employees,
        context.bureaus,
        period=schedule.period,
        rules=rules,
        only_shift_keys=new_keys,
    )
