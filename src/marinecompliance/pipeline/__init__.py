"""Compliance analysis pipeline: selection, dedup, normalization, session state."""

from marinecompliance.pipeline.compliance import Attempt, ComplianceOrchestrator

__all__ = ["Attempt", "ComplianceOrchestrator"]
