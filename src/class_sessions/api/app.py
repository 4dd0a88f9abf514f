"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException, Request, Response, status

from class_sessions.api.models import (
    AvailabilityRequest,
    ConflictItem,
    ConflictRequest,
    ConflictResponse,
    EligibilityItem,
    EligibilityRequest,
    EligibilityResponse,
    JoinRequest,
    JoinResponse,
    TimeConversionRequest,
    TimeConversionResponse,
)
from class_sessions.app_logging import configure_logging
from class_sessions.containers import AppContainer
from class_sessions.domain.classes import ClassDefinition
from class_sessions.domain.participation import JoinOutcome
from class_sessions.services.clock import FixedClock
from class_sessions.services.eligibility import JoinEligibilityEngine
from class_sessions.services.schedule_conflicts import (
    ScheduleConflict,
    check_student_conflicts,
    check_tutor_conflicts,
    conflict_messages,
)
from class_sessions.services.timezones import (
    availability_to_utc,
    utc_to_zone,
    zone_to_utc,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def _engine(request: Request, policy: str) -> JoinEligibilityEngine:
        state_container: AppContainer = request.app.state.container
        try:
            return state_container.engine_for(policy)
        except KeyError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown policy: {policy}",
            ) from exc

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/eligibility")
    async def eligibility(
        payload: EligibilityRequest, request: Request, policy: str = "generic"
    ) -> EligibilityResponse:
        """Evaluate join eligibility for each class in the list."""
        engine = _engine(request, policy)
        if payload.now is not None:
            engine = JoinEligibilityEngine(
                clock=FixedClock(payload.now),
                resolver=engine.resolver,
                policy=engine.policy,
            )
        classes = [ClassDefinition.from_payload(item) for item in payload.classes]
        evaluations = engine.evaluate_many(classes, payload.viewer.to_domain())
        return EligibilityResponse(
            policy=engine.policy.name,
            results=[
                EligibilityItem(
                    class_id=class_item.id,
                    title=class_item.display_title,
                    status=str(result.status),
                    message=result.message,
                    can_join=result.can_join,
                    minutes_until=result.minutes_until,
                )
                for class_item, result in evaluations
            ],
        )

    @app.post("/join")
    async def join(
        payload: JoinRequest,
        request: Request,
        response: Response,
        policy: str = "generic",
        authorization: str | None = Header(default=None),
    ) -> JoinResponse:
        """Register a join and return the meeting URL to open."""
        _engine(request, policy)
        state_container: AppContainer = request.app.state.container
        orchestrator = state_container.orchestrator_for(policy)
        class_item = ClassDefinition.from_payload(payload.class_item)
        outcome = await orchestrator.join(
            class_item, payload.viewer.to_domain(), token=_bearer(authorization)
        )
        if outcome.error:
            logger.info("Join rejected: class_id=%s", class_item.id)
            response.status_code = status.HTTP_400_BAD_REQUEST
        return _join_response(outcome)

    @app.post("/timezones/to-utc")
    async def to_utc(payload: TimeConversionRequest) -> TimeConversionResponse:
        """Convert a local wall-clock time to UTC."""
        return TimeConversionResponse(
            time=zone_to_utc(payload.time, payload.zone, payload.on)
        )

    @app.post("/timezones/from-utc")
    async def from_utc(payload: TimeConversionRequest) -> TimeConversionResponse:
        """Convert a UTC wall-clock time to a local zone."""
        return TimeConversionResponse(
            time=utc_to_zone(payload.time, payload.zone, payload.on)
        )

    @app.post("/timezones/availability")
    async def availability(payload: AvailabilityRequest) -> dict[str, object]:
        """Attach UTC slot times to a weekly availability map."""
        return {"availability": availability_to_utc(payload.availability, payload.zone)}

    @app.post("/schedule/conflicts")
    async def schedule_conflicts(payload: ConflictRequest) -> ConflictResponse:
        """Check a proposed class against existing tutor and student classes."""
        new_class = ClassDefinition.from_payload(payload.new_class)
        existing = [ClassDefinition.from_payload(item) for item in payload.existing]
        tutor_conflicts = check_tutor_conflicts(
            new_class,
            existing,
            payload.tutor_id or new_class.tutor_id,
            payload.exclude_class_id,
        )
        student_conflicts = check_student_conflicts(
            new_class,
            existing,
            payload.student_ids or list(new_class.student_ids),
            payload.exclude_class_id,
        )
        return ConflictResponse(
            has_conflict=bool(tutor_conflicts or student_conflicts),
            tutor_conflicts=[_conflict_item(c) for c in tutor_conflicts],
            student_conflicts=[_conflict_item(c) for c in student_conflicts],
            messages=conflict_messages(
                tutor_conflicts,
                student_conflicts,
                payload.tutor_name,
                payload.student_names,
            ),
        )

    return app


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return authorization.strip()


def _join_response(outcome: JoinOutcome) -> JoinResponse:
    registration = outcome.registration
    return JoinResponse(
        status=str(outcome.eligibility.status),
        message=outcome.eligibility.message,
        can_join=outcome.eligibility.can_join,
        canonical_class_id=outcome.canonical_class_id,
        meeting_id=outcome.meeting_id,
        meeting_url=outcome.meeting_url,
        session_participant_id=(
            registration.session_participant_id if registration else None
        ),
        warnings=list(outcome.warnings),
        error=outcome.error,
    )


def _conflict_item(conflict: ScheduleConflict) -> ConflictItem:
    return ConflictItem(
        class_id=conflict.existing.id,
        conflict_date=conflict.conflict_date,
        conflict_time=conflict.conflict_time,
        conflicting_students=list(conflict.conflicting_students),
    )
