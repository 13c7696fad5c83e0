"""Domain models for campaign categories and region summaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pca_coverage.domain.errors import CampaignCategoryError

CAMPAIGN_LEVELS: tuple[str, ...] = (
    "Nov SIA 2024",
    "Dec SIA 2024",
    "Jan SIA 2025",
    "Feb SIA 2025",
    "Apr NID 2025",
    "May NID 2025",
)
UNKNOWN_CAMPAIGN_POLICIES: tuple[str, ...] = ("append", "reject")
TOTAL_REGION = "Total"


def _to_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def campaign_order_map(campaigns: Iterable[str], unknown: str = "append") -> dict[str, int]:
    """Map each campaign label to its position in the fixed category order.

    Known labels keep their index in ``CAMPAIGN_LEVELS``. With ``unknown="append"``
    any other label is ranked after the known ones in first-seen order; with
    ``unknown="reject"`` the first unknown label raises ``CampaignCategoryError``.
    """
    if unknown not in UNKNOWN_CAMPAIGN_POLICIES:
        raise ValueError(f"Unknown campaign policy: {unknown!r}")

    order = {label: idx for idx, label in enumerate(CAMPAIGN_LEVELS)}
    extras: list[str] = []
    for campaign in campaigns:
        if campaign in order or campaign in extras:
            continue
        if unknown == "reject":
            raise CampaignCategoryError(
                f"Campaign {campaign!r} is not one of the known campaigns: {list(CAMPAIGN_LEVELS)}"
            )
        extras.append(campaign)

    for offset, campaign in enumerate(extras):
        order[campaign] = len(CAMPAIGN_LEVELS) + offset
    return order


@dataclass(frozen=True)
class RegionSummary:
    """One row of the per-region summary view."""

    region: str
    numerator: int
    denominator: int
    pct: float | None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RegionSummary":
        return cls(
            region=str(row.get("Region", "") or ""),
            numerator=int(row.get("numerator") or 0),
            denominator=int(row.get("denominator") or 0),
            pct=_to_optional_float(row.get("pct")),
        )

    def meets_target(self, target: float) -> bool:
        return self.pct is not None and self.pct >= target

    def as_dict(self) -> dict[str, Any]:
        return {
            "Region": self.region,
            "numerator": self.numerator,
            "denominator": self.denominator,
            "pct": self.pct,
        }
