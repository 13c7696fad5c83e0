"""Domain layer package."""

from .errors import (
    CampaignCategoryError,
    CoverageParseError,
    HeaderFormatError,
    OutputWriteError,
    ParseFailure,
    PipelineError,
    SourceFileError,
)
from .models import CAMPAIGN_LEVELS, TOTAL_REGION, RegionSummary, campaign_order_map

__all__ = [
    "CAMPAIGN_LEVELS",
    "TOTAL_REGION",
    "RegionSummary",
    "campaign_order_map",
    "PipelineError",
    "SourceFileError",
    "OutputWriteError",
    "HeaderFormatError",
    "CampaignCategoryError",
    "CoverageParseError",
    "ParseFailure",
]
