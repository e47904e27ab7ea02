"""StintLab access and garage enrichment core."""
