"""Business logic services for statusgraph."""
