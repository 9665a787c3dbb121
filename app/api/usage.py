"""Usage endpoint — current token totals for this process."""

from fastapi import APIRouter, Depends

from app.dependencies import get_usage_tracker
from app.schemas.tryon import UsageTotals
from app.services.usage import UsageTracker

router = APIRouter(tags=["usage"])


@router.get("/usage", response_model=UsageTotals)
def get_usage(usage: UsageTracker = Depends(get_usage_tracker)):
    totals = usage.totals()
    return UsageTotals(
        text_tokens=totals.text_tokens,
        image_tokens=totals.image_tokens,
        output_tokens=totals.output_tokens,
        calls=usage.calls,
    )
