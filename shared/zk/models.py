"""
ZK Proof Data Models
====================

Private inputs and pydantic models for age predicate proofs.

Version: 1.0.0
"""

import json
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, Field


# Predicate threshold baked into the age circuit
MIN_AGE = 18


@dataclass(frozen=True, repr=False)
class AttributeSet:
    """
    Private identity attributes.

    Lives only in process memory while a commitment or proof is being
    created. The repr is redacted so the values cannot leak through logs or
    tracebacks.
    """

    birth_year: int
    birth_month: int
    birth_day: int
    identity_secret: str

    def __repr__(self) -> str:
        return "AttributeSet(<redacted>)"

    __str__ = __repr__

    @property
    def birth_month_day(self) -> tuple[int, int]:
        return (self.birth_month, self.birth_day)


class ZKProof(BaseModel):
    """
    A Groth16 proof.

    Compatible with snarkjs Groth16 proof format.
    """

    # Proof points (G1 and G2 elements)
    pi_a: list[str] = Field(..., description="Proof point A (G1)")
    pi_b: list[list[str]] = Field(..., description="Proof point B (G2)")
    pi_c: list[str] = Field(..., description="Proof point C (G1)")

    # Protocol info
    protocol: str = Field(default="groth16")
    curve: str = Field(default="bn128")


class PublicSignals(BaseModel):
    """
    Public outputs and inputs of an age proof.

    Layout: ``[predicate_result, proof_fingerprint, *backend_specific]``
    where ``predicate_result`` is ``"1"`` or ``"0"``.
    """

    signals: list[str] = Field(..., min_length=2, description="Public signals as strings")

    @classmethod
    def build(cls, predicate_result: bool, proof_fingerprint: str, *extra: str) -> "PublicSignals":
        """Assemble signals in the canonical order."""
        return cls(signals=["1" if predicate_result else "0", proof_fingerprint, *extra])

    @property
    def predicate_result(self) -> bool:
        """Whether the age predicate held."""
        return self.signals[0] == "1"

    @property
    def proof_fingerprint(self) -> str:
        """Fixed-width fingerprint binding the proof to its commitment."""
        return self.signals[1]


class ProofMetadata(BaseModel):
    """Public parameters and bookkeeping for a generated proof."""

    backend: str
    circuit_name: str
    reference_date: date
    threshold: int = Field(default=MIN_AGE, ge=0)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    proving_time_ms: int = Field(default=0, ge=0)


class AgeProof(BaseModel):
    """
    Complete proof artifact.

    ``proof`` is opaque to everything but the backend that produced it.
    """

    proof: dict[str, Any]
    public_signals: PublicSignals
    metadata: ProofMetadata

    @property
    def predicate_result(self) -> bool:
        return self.public_signals.predicate_result

    @property
    def proof_fingerprint(self) -> str:
        return self.public_signals.proof_fingerprint

    def canonical_bytes(self) -> bytes:
        """
        Stable encoding of the proof and its public signals.

        Metadata is excluded since timings differ between otherwise
        identical proofs.
        """
        payload = {
            "proof": self.proof,
            "public_signals": self.public_signals.signals,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
