"""
ZK Age Proof Module
===================

Identity commitments and the prove/verify contract for age predicate proofs.

Usage:
    from shared.zk import AttributeSet, commit, get_proof_backend

    attributes = AttributeSet(1990, 5, 15, "correct horse battery staple")
    commitment = commit(attributes)

    backend = get_proof_backend()
    proof = await backend.prove(attributes, commitment, date.today())

    # Verify proof
    is_valid = await backend.verify(proof, proof.public_signals, commitment)

Version: 1.0.0
"""

from shared.zk.backend import (
    ProofBackend,
    get_proof_backend,
    reset_proof_backend,
    set_proof_backend,
)
from shared.zk.commitment import age_bracket, age_in_years, commit
from shared.zk.models import (
    MIN_AGE,
    AgeProof,
    AttributeSet,
    ProofMetadata,
    PublicSignals,
    ZKProof,
)
from shared.zk.simulated import SimulatedProofBackend


__all__ = [
    # Commitments
    "commit",
    "age_in_years",
    "age_bracket",
    # Backends
    "ProofBackend",
    "SimulatedProofBackend",
    "get_proof_backend",
    "set_proof_backend",
    "reset_proof_backend",
    # Models
    "MIN_AGE",
    "AttributeSet",
    "AgeProof",
    "PublicSignals",
    "ProofMetadata",
    "ZKProof",
]
