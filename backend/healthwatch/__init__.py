"""HealthWatch: vital-sign alert evaluation and notification gating."""
