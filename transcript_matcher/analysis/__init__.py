from .challenges import forecast_challenges
from .gaps import analyze_gaps, build_recommendations, find_gaps

__all__ = ["analyze_gaps", "build_recommendations", "find_gaps", "forecast_challenges"]
