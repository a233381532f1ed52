"""Transaction execution core: fees, signers, submission and failure classification."""
