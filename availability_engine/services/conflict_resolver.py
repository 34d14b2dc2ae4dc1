# availability_engine/services/conflict_resolver.py
from __future__ import annotations

from typing import Iterable, List, Optional

from availability_engine.core.errors import DegenerateRecurrenceError
from availability_engine.core.logging import get_logger
from availability_engine.schemas.conflict import ConflictOutcome, ConflictReport, RejectedOccurrence
from availability_engine.schemas.instance import BLOCKING_STATUSES, ScheduleInstance
from availability_engine.schemas.session_template import ConflictResolution, SessionTemplate
from availability_engine.services.occurrence_generator import (
    DEFAULT_LOOKAHEAD_FACTOR,
    generate_occurrences,
)

logger = get_logger(__name__)


def _collision_order(instance: ScheduleInstance) -> tuple:
    return (
        instance.start,
        instance.end,
        instance.source_rule_id,
        instance.status.value,
        instance.segment,
    )


class ConflictResolver:
    """
    Resolves a proposed recurring session against an owner's merged timeline.

    Rules
    -----
    - Only BOOKED and BLOCKED instances of the template's owner can collide;
      AVAILABLE (and RESERVED) time never blocks a candidate.
    - Overlap is strict: candidate.start < existing.end and
      candidate.end > existing.start (back-to-back slots do not collide).
    - FAIL      => any collision rejects the whole series (atomic).
    - SKIP      => colliding candidates are dropped; PARTIAL if any were.
    - OVERRIDE  => everything is accepted; collided instances are reported
                   as superseded for the caller to retire.

    Note
    ----
    Reading the timeline and committing the accepted occurrences must be
    serialized per owner by the caller; two concurrent resolutions against
    the same pre-commit timeline can both succeed.
    """

    @staticmethod
    def resolve(
        template: SessionTemplate,
        owner_timeline: Iterable[ScheduleInstance],
        lookahead_factor: int = DEFAULT_LOOKAHEAD_FACTOR,
    ) -> ConflictReport:
        """
        Build the ConflictReport for `template`.

        Identical inputs always give an identical report, whatever the order
        of `owner_timeline`.
        """
        log = logger.bind(
            owner_id=template.owner_id,
            template_id=template.template_id,
            policy=template.conflict_resolution.value,
        )

        try:
            candidates = generate_occurrences(template, lookahead_factor=lookahead_factor)
        except DegenerateRecurrenceError as exc:
            log.warning("degenerate_recurrence", reason=str(exc))
            return ConflictReport(
                outcome=ConflictOutcome.REJECTED,
                rejected_occurrences=[
                    RejectedOccurrence(candidate=candidate) for candidate in exc.produced
                ],
                failure_reason=str(exc),
            )

        blockers = sorted(
            (
                instance
                for instance in owner_timeline
                if instance.owner_id == template.owner_id
                and instance.status in BLOCKING_STATUSES
            ),
            key=_collision_order,
        )

        collisions = [
            (candidate, ConflictResolver._collisions_for(candidate, blockers))
            for candidate in candidates
        ]

        report = ConflictResolver._apply_policy(template.conflict_resolution, collisions)

        log.info(
            "session_template_resolved",
            outcome=report.outcome.value,
            candidates=len(candidates),
            accepted=len(report.accepted_occurrences),
            rejected=len(report.rejected_occurrences),
            superseded=len(report.superseded_instances),
        )
        return report

    @staticmethod
    def _collisions_for(
        candidate: ScheduleInstance,
        blockers: List[ScheduleInstance],
    ) -> List[ScheduleInstance]:
        """
        Every blocker overlapping `candidate`, in collision order.

        `blockers` must already be sorted by start.
        """
        hits: List[ScheduleInstance] = []
        for existing in blockers:
            if existing.start >= candidate.end:
                break
            if candidate.start < existing.end and candidate.end > existing.start:
                hits.append(existing)
        return hits

    @staticmethod
    def _apply_policy(
        policy: ConflictResolution,
        collisions: List[tuple[ScheduleInstance, List[ScheduleInstance]]],
    ) -> ConflictReport:
        any_collision = any(hits for _, hits in collisions)

        if policy == ConflictResolution.FAIL:
            if not any_collision:
                return ConflictReport(
                    outcome=ConflictOutcome.COMMITTED,
                    accepted_occurrences=[candidate for candidate, _ in collisions],
                )
            return ConflictReport(
                outcome=ConflictOutcome.REJECTED,
                rejected_occurrences=[
                    RejectedOccurrence(candidate=candidate, colliding_instance=_first(hits))
                    for candidate, hits in collisions
                ],
            )

        if policy == ConflictResolution.SKIP:
            accepted = [candidate for candidate, hits in collisions if not hits]
            rejected = [
                RejectedOccurrence(candidate=candidate, colliding_instance=hits[0])
                for candidate, hits in collisions
                if hits
            ]
            return ConflictReport(
                outcome=ConflictOutcome.PARTIAL if rejected else ConflictOutcome.COMMITTED,
                accepted_occurrences=accepted,
                rejected_occurrences=rejected,
            )

        # OVERRIDE
        superseded: dict[tuple, ScheduleInstance] = {}
        for _, hits in collisions:
            for existing in hits:
                superseded.setdefault(_collision_order(existing) + (existing.key,), existing)

        return ConflictReport(
            outcome=ConflictOutcome.COMMITTED,
            accepted_occurrences=[candidate for candidate, _ in collisions],
            superseded_instances=[superseded[k] for k in sorted(superseded)],
        )


def _first(hits: List[ScheduleInstance]) -> Optional[ScheduleInstance]:
    return hits[0] if hits else None


def resolve(
    template: SessionTemplate,
    owner_timeline: Iterable[ScheduleInstance],
    lookahead_factor: int = DEFAULT_LOOKAHEAD_FACTOR,
) -> ConflictReport:
    """Module-level shortcut for ConflictResolver.resolve."""
    return ConflictResolver.resolve(template, owner_timeline, lookahead_factor=lookahead_factor)
