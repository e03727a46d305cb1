"""
snarkjs Proof Backend
=====================

Groth16 age proofs via snarkjs.

Runs ``snarkjs groth16 fullprove`` / ``groth16 verify`` as a subprocess
against the compiled ``age_verification`` circuit. The circuit is expected
to expose public signals in this order:

    [is_eligible, proof_fingerprint,
     current_year, current_month, current_day, min_age, identity_commitment]

Version: 1.0.0
"""

import asyncio
import json
import tempfile
import time
from datetime import date
from pathlib import Path
from typing import Any

from shared.errors import BackendUnavailableError, ProofGenerationError
from shared.logging import get_logger
from shared.zk.backend import ProofBackend
from shared.zk.commitment import commitment_to_field
from shared.zk.models import AgeProof, AttributeSet, ProofMetadata, PublicSignals, ZKProof


logger = get_logger(__name__)

# Default circuit build directory
DEFAULT_BUILD_DIR = Path(__file__).parent.parent.parent / "circuits" / "build"

SIGNAL_COUNT = 7


class SnarkjsProofBackend(ProofBackend):
    """
    Groth16 proof backend driven by the snarkjs CLI.

    Usage:
        backend = SnarkjsProofBackend()

        proof = await backend.prove(
            attributes=attributes,
            commitment=commitment,
            reference_date=date.today(),
        )
    """

    def __init__(
        self,
        build_dir: str | Path | None = None,
        circuit_name: str = "age_verification",
    ):
        """
        Initialize the backend.

        Args:
            build_dir: Path to circuit build directory.
                      Defaults to circuits/build/
            circuit_name: Name of the compiled circuit
        """
        self.build_dir = Path(build_dir) if build_dir else DEFAULT_BUILD_DIR
        self.circuit_name = circuit_name
        self._validate_setup()

    @property
    def name(self) -> str:
        return "snarkjs"

    @property
    def circuit_dir(self) -> Path:
        return self.build_dir / self.circuit_name

    @property
    def wasm_path(self) -> Path:
        return self.circuit_dir / f"{self.circuit_name}_js" / f"{self.circuit_name}.wasm"

    @property
    def zkey_path(self) -> Path:
        return self.circuit_dir / "proving_key.zkey"

    @property
    def vkey_path(self) -> Path:
        return self.circuit_dir / "verification_key.json"

    def _validate_setup(self) -> None:
        """Validate that required circuit files exist."""
        if not self.build_dir.exists():
            logger.warning(
                "zk_circuit_build_dir_not_found",
                path=str(self.build_dir),
            )

    async def health_check(self) -> dict[str, Any]:
        """Report whether the circuit artefacts are in place."""
        missing = [
            p.name for p in (self.wasm_path, self.zkey_path, self.vkey_path) if not p.exists()
        ]
        return {
            "status": "unhealthy" if missing else "healthy",
            "backend": self.name,
            "circuit": self.circuit_name,
            "missing": missing,
        }

    def build_input(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
        threshold: int,
    ) -> dict[str, Any]:
        """Map attributes and public parameters onto circuit input names."""
        return {
            "birth_year": attributes.birth_year,
            "birth_month": attributes.birth_month,
            "birth_day": attributes.birth_day,
            "identity_secret": attributes.identity_secret,
            "current_year": reference_date.year,
            "current_month": reference_date.month,
            "current_day": reference_date.day,
            "min_age": threshold,
            "identity_commitment": str(commitment_to_field(commitment)),
        }

    async def _run(self, *args: str) -> tuple[int, str, str]:
        """
        Run a snarkjs command.

        The subprocess is killed if the awaiting task is cancelled, e.g. by
        a caller-side timeout.
        """
        process = await asyncio.create_subprocess_exec(
            "npx",
            "snarkjs",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.build_dir.parent,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise
        return process.returncode or 0, stdout.decode(), stderr.decode()

    async def _generate(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
        threshold: int,
    ) -> AgeProof:
        if not self.wasm_path.exists():
            raise BackendUnavailableError(f"Circuit WASM not found: {self.wasm_path}")
        if not self.zkey_path.exists():
            raise BackendUnavailableError(f"Proving key not found: {self.zkey_path}")

        # Private inputs are written only to a per-call temp dir that is
        # removed before returning
        with tempfile.TemporaryDirectory(prefix="ageproof-") as tmp:
            work_dir = Path(tmp)
            input_file = work_dir / "input.json"
            proof_file = work_dir / "proof.json"
            public_file = work_dir / "public.json"

            with open(input_file, "w") as f:
                json.dump(self.build_input(attributes, commitment, reference_date, threshold), f)

            start_time = time.time()

            returncode, _, stderr = await self._run(
                "groth16",
                "fullprove",
                str(input_file),
                str(self.wasm_path),
                str(self.zkey_path),
                str(proof_file),
                str(public_file),
            )

            proving_time_ms = int((time.time() - start_time) * 1000)

            if returncode != 0:
                # stderr may echo witness values, so it is not logged
                logger.error(
                    "snarkjs_proof_generation_failed",
                    circuit=self.circuit_name,
                    returncode=returncode,
                    stderr_length=len(stderr),
                )
                raise ProofGenerationError("Proof generation failed")

            with open(proof_file) as f:
                proof_json = json.load(f)
            with open(public_file) as f:
                public_signals = [str(s) for s in json.load(f)]

        if len(public_signals) != SIGNAL_COUNT:
            raise ProofGenerationError(
                f"Unexpected public signal count: {len(public_signals)}"
            )

        logger.info(
            "zk_proof_generated",
            circuit=self.circuit_name,
            proving_time_ms=proving_time_ms,
        )

        return AgeProof(
            proof=ZKProof(**proof_json).model_dump(),
            public_signals=PublicSignals(signals=public_signals),
            metadata=ProofMetadata(
                backend=self.name,
                circuit_name=self.circuit_name,
                reference_date=reference_date,
                threshold=threshold,
                proving_time_ms=proving_time_ms,
            ),
        )

    def signals_match(
        self,
        proof: AgeProof,
        public_signals: PublicSignals,
        commitment: str,
    ) -> bool:
        """Check the public inputs in the signals against the claimed statement."""
        signals = public_signals.signals
        if len(signals) != SIGNAL_COUNT or signals[0] not in ("0", "1"):
            return False

        reference_date = proof.metadata.reference_date
        expected_inputs = [
            str(reference_date.year),
            str(reference_date.month),
            str(reference_date.day),
            str(proof.metadata.threshold),
            str(commitment_to_field(commitment)),
        ]
        return signals[2:] == expected_inputs

    async def verify(
        self,
        proof: AgeProof,
        public_signals: PublicSignals,
        commitment: str,
    ) -> bool:
        """
        Verify a proof off-chain using snarkjs.

        The commitment and public parameters are compared with the signals
        before the pairing check, so a proof for another commitment fails
        even though its Groth16 equation holds.
        """
        if not self.signals_match(proof, public_signals, commitment):
            logger.info("zk_proof_signals_mismatch", circuit=self.circuit_name)
            return False

        if not self.vkey_path.exists():
            raise BackendUnavailableError(f"Verification key not found: {self.vkey_path}")

        with tempfile.TemporaryDirectory(prefix="ageproof-verify-") as tmp:
            work_dir = Path(tmp)
            proof_file = work_dir / "proof.json"
            public_file = work_dir / "public.json"

            with open(proof_file, "w") as f:
                json.dump(proof.proof, f)
            with open(public_file, "w") as f:
                json.dump(public_signals.signals, f)

            start_time = time.time()

            returncode, stdout, _ = await self._run(
                "groth16",
                "verify",
                str(self.vkey_path),
                str(public_file),
                str(proof_file),
            )

            verification_time_ms = int((time.time() - start_time) * 1000)

        is_valid = returncode == 0 and "OK" in stdout

        logger.info(
            "zk_proof_verified",
            circuit=self.circuit_name,
            valid=is_valid,
            verification_time_ms=verification_time_ms,
        )

        return is_valid
