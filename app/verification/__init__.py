from .linkedin_verifier import LinkedInVerifier, VerificationDecision

__all__ = ["LinkedInVerifier", "VerificationDecision"]
