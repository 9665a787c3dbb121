"""Token usage accounting shared by all generation calls."""

import math
from dataclasses import dataclass


@dataclass
class UsageRecord:
    text_tokens: int = 0
    image_tokens: int = 0
    output_tokens: int = 0


class UsageTracker:
    """Running totals of token usage. Totals are advisory; no locking."""

    def __init__(self):
        self.text_tokens = 0
        self.image_tokens = 0
        self.output_tokens = 0
        self.calls = 0

    def add(self, record: UsageRecord) -> None:
        self.text_tokens += record.text_tokens
        self.image_tokens += record.image_tokens
        self.output_tokens += record.output_tokens
        self.calls += 1

    def totals(self) -> UsageRecord:
        return UsageRecord(
            text_tokens=self.text_tokens,
            image_tokens=self.image_tokens,
            output_tokens=self.output_tokens,
        )


def usage_from_response(usage: dict | None) -> UsageRecord | None:
    """Build a UsageRecord from a provider ``usage`` block, or None if absent.

    Image endpoints split input tokens into text/image details; the responses
    endpoint only reports a total, which is counted as text.
    """
    if not usage:
        return None
    details = usage.get("input_tokens_details") or {}
    if "text_tokens" in details or "image_tokens" in details:
        text_tokens = details.get("text_tokens") or 0
        image_tokens = details.get("image_tokens") or 0
    else:
        text_tokens = usage.get("input_tokens") or 0
        image_tokens = 0
    return UsageRecord(
        text_tokens=text_tokens,
        image_tokens=image_tokens,
        output_tokens=usage.get("output_tokens") or 0,
    )


def estimate_image_usage(prompt: str, quality: str) -> UsageRecord:
    """Rough estimate for image calls whose provider reports no usage."""
    return UsageRecord(
        text_tokens=math.ceil(len(prompt) / 4),
        image_tokens=0,
        output_tokens=2000 if quality == "high" else 1000,
    )


# Process-wide default, handed to clients through app.dependencies
usage_tracker = UsageTracker()
