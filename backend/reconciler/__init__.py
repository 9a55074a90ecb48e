"""
Scheduled external-data reconciliation for catalog entities.
Re-verifies halal certification against the MUIS registry and Instagram
profile liveness, and stages confidence-scored update proposals for review.
"""
