"""
Constants declarations for qiblacompass
"""

# Mean Earth Radius (approximate for Haversine)
EARTH_RADIUS_METERS = 6_371_000.0

# The Kaaba, Mecca
KAABA_LATITUDE = 21.422487
KAABA_LONGITUDE = 39.826206

# Below this, both atan2 arguments of the bearing formula are treated as zero
DEGENERATE_EPSILON = 1e-12
