"""
procurement_engines.detection -- Rule-based issue detection engine.

Responsibility:
    Hold a registry of pluggable detection rules, run the enabled ones
    against input items, and wrap every emitted ``DetectionResult`` into a
    fully populated, numbered ``Issue``.  Batch runs also produce per-category
    and per-priority summaries and the action-required subset.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Independent of the revision engine.  Rules come from domain modules
    (e.g. ``procurement_modules.purchasing``); time from an injected Clock.

Invariants enforced:
    - Rule ids are unique within an engine (``DuplicateRuleError``).
    - The issue-number counter belongs to the engine instance and only
      increases: numbers never reset between items, rules or calls.
    - Batch runs iterate rules outer, items inner.
    - ``action_required`` is exactly the open critical/high issues, so it
      always agrees with ``calculate_issue_stats`` over the same issues.
    - Toggling a rule swaps in a copy; issues already produced are
      unaffected.

Failure modes:
    - Unknown ids in ``rule_ids`` are ignored; ``set_rule_enabled`` on an
      unknown id returns False.
    - An exception raised inside a rule's detect function propagates to the
      caller after being logged as ``detection_rule_failed``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from procurement_engines.tracer import traced_engine
from procurement_kernel.domain.clock import SYSTEM_CLOCK, Clock
from procurement_kernel.domain.issue import (
    ACTION_REQUIRED_PRIORITIES,
    BatchDetectionInput,
    BatchDetectionOutput,
    DetectionContext,
    DetectionEngineConfig,
    DetectionResult,
    DetectionRule,
    Issue,
    IssuePriority,
    IssueSource,
    IssueSourceType,
    IssueStatus,
)
from procurement_kernel.exceptions import DuplicateRuleError
from procurement_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.detection")


class DetectionEngine:
    """
    Registry and runner for detection rules.

    Contract:
        ``detect`` runs the selected enabled rules against one item;
        ``detect_batch`` against many.  Both return new Issue values with
        ``status=open`` and an automatic source naming the rule.
    """

    def __init__(
        self,
        rules: Iterable[DetectionRule],
        config: DetectionEngineConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or DetectionEngineConfig()
        self._clock = clock or SYSTEM_CLOCK
        self._rules: dict[str, DetectionRule] = {}
        for rule in rules:
            if rule.id in self._rules:
                raise DuplicateRuleError(rule.id)
            self._rules[rule.id] = rule
        self._issue_counter = 0

        logger.info("detection_engine_created", extra={
            "rule_count": len(self._rules),
            "rule_ids": list(self._rules),
        })

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get_rules(self) -> list[DetectionRule]:
        """Registered rules in registration order (a new list)."""
        return list(self._rules.values())

    def get_rule(self, rule_id: str) -> DetectionRule | None:
        return self._rules.get(rule_id)

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> bool:
        """Enable or disable a rule for subsequent runs; False if unknown."""
        rule = self._rules.get(rule_id)
        if rule is None:
            logger.warning("detection_rule_not_found", extra={"rule_id": rule_id})
            return False
        self._rules[rule_id] = replace(rule, enabled=enabled)
        logger.info("detection_rule_toggled", extra={
            "rule_id": rule_id,
            "enabled": enabled,
        })
        return True

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    @traced_engine("detection", "1.0", fingerprint_fields=("item", "rule_ids"))
    def detect(
        self,
        item: Any,
        context: DetectionContext | None = None,
        rule_ids: Sequence[str] | None = None,
    ) -> list[Issue]:
        """Run the selected enabled rules against one item."""
        merged = self._merge_context(context)
        issues: list[Issue] = []
        for rule in self._select_rules(rule_ids):
            issues.extend(self._run_rule(rule, item, merged))

        logger.info("detection_completed", extra={
            "issue_count": len(issues),
        })
        return issues

    @traced_engine("detection", "1.0", fingerprint_fields=("batch",))
    def detect_batch(self, batch: BatchDetectionInput) -> BatchDetectionOutput:
        """Run every selected enabled rule against every item."""
        items = tuple(batch.items)
        merged = self._merge_context(batch.context)
        issues: list[Issue] = []
        rules_executed: list[str] = []

        for rule in self._select_rules(batch.rule_ids):
            rules_executed.append(rule.id)
            for item in items:
                issues.extend(self._run_rule(rule, item, merged))

        by_category: dict[str, int] = {}
        by_priority: dict[IssuePriority, int] = {p: 0 for p in IssuePriority}
        for issue in issues:
            by_category[issue.category] = by_category.get(issue.category, 0) + 1
            by_priority[issue.priority] += 1

        action_required = tuple(
            i for i in issues
            if i.status is IssueStatus.OPEN and i.priority in ACTION_REQUIRED_PRIORITIES
        )

        logger.info("batch_detection_completed", extra={
            "item_count": len(items),
            "rules_executed": rules_executed,
            "issue_count": len(issues),
            "action_required_count": len(action_required),
        })
        return BatchDetectionOutput(
            issues=tuple(issues),
            by_category_summary=by_category,
            by_priority_summary=by_priority,
            action_required=action_required,
            detected_at=self._clock.now(),
            rules_executed=tuple(rules_executed),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select_rules(self, rule_ids: Sequence[str] | None) -> list[DetectionRule]:
        rules = [r for r in self._rules.values() if r.enabled]
        if rule_ids is None:
            return rules
        wanted = set(rule_ids)
        return [r for r in rules if r.id in wanted]

    def _merge_context(self, context: DetectionContext | None) -> DetectionContext:
        config = dict(self._config.default_config)
        meta = dict(self._config.default_meta)
        if context is None:
            return DetectionContext(
                current_date=self._clock.now(), config=config, meta=meta,
            )
        config.update(context.config)
        meta.update(context.meta)
        return DetectionContext(
            current_date=context.current_date or self._clock.now(),
            config=config,
            meta=meta,
        )

    def _run_rule(
        self,
        rule: DetectionRule,
        item: Any,
        context: DetectionContext,
    ) -> list[Issue]:
        with LogContext.bind(rule_id=rule.id):
            try:
                results = list(rule.detect(item, context))
            except Exception:
                logger.exception("detection_rule_failed", extra={
                    "rule_category": rule.category,
                })
                raise

            issues = [self._create_issue(result, rule) for result in results]
            if issues:
                logger.debug("detection_rule_matched", extra={
                    "issue_count": len(issues),
                    "issue_numbers": [i.issue_number for i in issues],
                })
            return issues

    def _create_issue(self, result: DetectionResult, rule: DetectionRule) -> Issue:
        self._issue_counter += 1
        detected_at = self._clock.now()
        return Issue(
            id=self._config.generate_id("iss"),
            issue_number=self._config.generate_issue_number(
                result.category, self._issue_counter, detected_at,
            ),
            category=result.category,
            priority=IssuePriority(result.priority),
            title=result.title,
            description=result.description,
            status=IssueStatus.OPEN,
            source=IssueSource(type=IssueSourceType.AUTOMATIC, detector=rule.id),
            detected_at=detected_at,
            detected_by=rule.id,
            suggested_action=result.suggested_action,
            related_objects=tuple(result.related_objects),
            affected_quantity=result.affected_quantity,
            affected_value=result.affected_value,
            source_data=dict(result.source_data),
            meta=dict(result.meta),
        )
