"""Verdict Composer agent: rule-based decision refined by a model summary."""

import logging

from diff_reviewer.agents.exceptions import ResponseParseError, VerdictGenerationError
from diff_reviewer.agents.prompts import build_verdict_messages
from diff_reviewer.agents.response_parser import parse_verdict
from diff_reviewer.llm.client import ChatClient
from diff_reviewer.llm.exceptions import BackendError
from diff_reviewer.models.review_models import Comment, Decision, Stats, Verdict
from diff_reviewer.models.run_models import DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Verdict unavailable due to parsing error."
FALLBACK_RATIONALE = "Defaulted to rule-based decision."
MISSING_SUMMARY = "Summary unavailable."


def rule_decision(stats: Stats) -> Decision:
    """NO_GO when at least one BLOCKER exists, GO otherwise."""
    return Decision.NO_GO if stats.blocker > 0 else Decision.GO


def reconcile_decision(rule: Decision, model: Decision) -> Decision:
    """The model may escalate GO to NO_GO but never relax a rule NO_GO."""
    if Decision.NO_GO in (rule, model):
        return Decision.NO_GO
    return Decision.GO


def fallback_verdict(rule: Decision, stats: Stats) -> Verdict:
    return Verdict(
        decision=rule,
        summary=FALLBACK_SUMMARY,
        rationale=[FALLBACK_RATIONALE],
        stats=stats,
    )


class VerdictComposer:
    """Produces the final Verdict for a set of deduplicated comments."""

    def __init__(
        self,
        client: ChatClient,
        model: str,
        guidelines: str,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self.client = client
        self.model = model
        self.guidelines = guidelines
        self.temperature = temperature

    def compose(self, comments: list[Comment]) -> Verdict:
        """Compute stats and the rule decision, then ask the model for a summary.

        Never raises. When the summary call or its decoding fails the verdict
        falls back to the rule decision with a fixed summary.
        """
        stats = Stats.from_comments(comments)
        rule = rule_decision(stats)

        try:
            model_decision, summary, rationale = self._request_summary(comments, stats, rule)
        except VerdictGenerationError as e:
            logger.warning("Falling back to rule-based verdict: %s", e)
            return fallback_verdict(rule, stats)

        decision = reconcile_decision(rule, model_decision)
        if decision != model_decision:
            logger.info(
                "Model decision %s overridden by rule decision %s",
                model_decision.value,
                rule.value,
            )

        return Verdict(
            decision=decision,
            summary=summary or MISSING_SUMMARY,
            rationale=rationale,
            stats=stats,
        )

    def _request_summary(
        self,
        comments: list[Comment],
        stats: Stats,
        rule: Decision,
    ) -> tuple[Decision, str, list[str]]:
        messages = build_verdict_messages(self.guidelines, comments, stats, rule)
        try:
            content = self.client.complete(self.model, messages, self.temperature)
        except BackendError as e:
            raise VerdictGenerationError(f"summary request failed: {e}") from e
        except Exception as e:
            raise VerdictGenerationError(f"summary request failed: {type(e).__name__}: {e}") from e

        try:
            return parse_verdict(content)
        except ResponseParseError as e:
            raise VerdictGenerationError(str(e)) from e
