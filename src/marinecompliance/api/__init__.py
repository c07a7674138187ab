"""HTTP surface for the compliance dashboard."""
