"""
Live streaming domain logic.

Includes:
- ingress: Ingress provisioning and reconciliation of LiveKit resources.
- stream: Stream records and webhook-driven live state.
"""
