"""Domain packages for roles, entitlements, feature gating and the garage."""
