from visibility_engine.models.aggregated_metric import AggregatedBrandMetricRecord
from visibility_engine.models.response_score import BrandResponseScoreRecord

__all__ = [
    "AggregatedBrandMetricRecord",
    "BrandResponseScoreRecord",
]
