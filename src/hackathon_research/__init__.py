"""Post-hackathon trajectory research: plan, search, evaluate, analyze, persist."""

__version__ = "0.1.0"
