"""
Physical Constants
==================
Fixed values shared by the drag model and the integrator.

Coordinate system:
  x = downrange (horizontal)
  y = altitude  (vertical, up positive)
  z = crossrange (lateral, 3D instantiations only)
"""

# ── Environment ───────────────────────────────────────────────────────────
GRAVITY          = 9.81        # m/s²  (acts along -y only)
AIR_DENSITY      = 1.225       # kg/m³ (sea level, held constant)

# ── Weapon ────────────────────────────────────────────────────────────────
MUZZLE_VELOCITY  = 850.0       # m/s

# ── Frame ─────────────────────────────────────────────────────────────────
VERTICAL_AXIS    = 1           # index of y in a position/velocity vector
SUPPORTED_DIMENSIONS = (2, 3)
