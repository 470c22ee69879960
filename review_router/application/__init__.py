# Application Layer
# =================
# Use cases that orchestrate the domain and infrastructure:
# - distributor: round-robin link selection per tier
# - config_service: admin read/save of the router configuration
# - generation: review text drafting with Gemini

from .distributor import TierDistributor, Distribution, normalize_tier
from .config_service import ConfigService
from .generation import GenerationService, GenerationResult, build_prompt, DEFAULT_PROMPT

__all__ = [
    "TierDistributor",
    "Distribution",
    "normalize_tier",
    "ConfigService",
    "GenerationService",
    "GenerationResult",
    "build_prompt",
    "DEFAULT_PROMPT",
]
