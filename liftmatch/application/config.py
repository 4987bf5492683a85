"""
Default configuration for the matching and routing engines.
Un solo lugar para evitar duplicar valores entre API, casos de uso y motores.
"""

from liftmatch.domain.constraints import (
    CollisionConfig,
    DensityConfig,
    MatchPolicy,
    ProximityConfig,
    RoutingConfig,
)

# Weights and windows are the historical ones; pending product review.
DEFAULT_MATCH_POLICY = MatchPolicy()

DEFAULT_PROXIMITY_CONFIG = ProximityConfig()

# 3 km / 60 min: pickup coordination between two drivers finishing nearby.
DEFAULT_COLLISION_CONFIG = CollisionConfig()

DEFAULT_ROUTING_CONFIG = RoutingConfig()

DEFAULT_DENSITY_CONFIG = DensityConfig()
