from __future__ import annotations

# Positional epsilon for near-zero distance/length checks.
EPS_POS = 1e-12

# Area epsilon for degenerate element checks.
EPS_AREA = 1e-12

# Near clip distance used when rasterizing from an element's centre.
EPS_NEAR = 1e-4
