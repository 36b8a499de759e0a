"""
Service layer

Pure computation, no status changes:
- pairing_service: per-round random pairing
- standings_service: ranking from recorded results
- result_service: winner derivation and result validation
"""
