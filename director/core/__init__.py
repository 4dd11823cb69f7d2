"""Orchestration core: planning, reference wiring, execution guards."""
