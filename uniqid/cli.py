"""
uniqid - command line for leaf derivation, identifier handling and verification.

Implements:
  - uniqid leaf        Derive the leaf for (email, secret)
  - uniqid inputs      snarkjs input.json for client-side proving
  - uniqid parse-id    Parse "42" / "UNIQ-000042" into both encodings
  - uniqid format-id   Display form of a numeric identifier
  - uniqid resolve     Look a leaf up in the on-chain registry
  - uniqid verify      Run a full verification and print the verdict

Exit codes for `resolve`: 0 registered, 2 unregistered, 3 registry unavailable.
Exit codes for `verify`: 0 accepted, 1 rejected.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import Settings, get_settings
from .errors import InvalidInput, RegistryUnavailable, UniqIdError
from .hasher import Hasher
from .identifiers import IdentifierCodec
from .logging import setup_logging
from .orchestrator import VerificationOrchestrator
from .registry import EthRegistryReader, RegistryConfig, Unregistered
from .types import Accepted, VerificationRequest, encode_verdict
from .verifiers import Groth16ProofVerifier

app = typer.Typer(help="UNIQ-ID leaf derivation, registry lookup and proof verification")

EXIT_UNREGISTERED = 2
EXIT_UNAVAILABLE = 3


def _pretty(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _fail(err: UniqIdError, code: int = 1) -> None:
    typer.echo(f"Error: {err.message}", err=True)
    raise typer.Exit(code)


def _registry_config(settings: Settings, rpc_url: Optional[str], contract: Optional[str]) -> RegistryConfig:
    contract = contract or settings.contract_address
    if not contract:
        typer.echo("Error: registry contract not set (--contract or UNIQID_CONTRACT_ADDRESS)", err=True)
        raise typer.Exit(1)
    return RegistryConfig(
        rpc_url=rpc_url or settings.rpc_url,
        contract_address=contract,
        timeout_s=settings.rpc_timeout_s,
        max_attempts=settings.rpc_max_attempts,
        backoff_base_s=settings.rpc_backoff_base_s,
        id_prefix=settings.id_prefix,
    )


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override UNIQID_LOG_LEVEL"),
) -> None:
    settings = get_settings()
    setup_logging(level=log_level or settings.log_level, log_format=settings.log_format)


@app.command()
def leaf(
    email: str = typer.Option(..., "--email", help="Registered email address"),
    secret: str = typer.Option(..., "--secret", prompt=True, hide_input=True, help="Secret key"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also print the intermediate hashes"),
) -> None:
    """Derive the leaf commitment for (email, secret)."""
    try:
        d = Hasher().derive(email, secret)
    except InvalidInput as e:
        _fail(e)
    if verbose:
        typer.echo(_pretty({"leaf": d.leaf_hex, "emailHash": str(d.email_hash), "secretHash": str(d.secret_hash)}))
    else:
        typer.echo(d.leaf_hex)


@app.command()
def inputs(
    email: str = typer.Option(..., "--email"),
    secret: str = typer.Option(..., "--secret", prompt=True, hide_input=True),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write input.json here instead of stdout"),
) -> None:
    """Print the snarkjs input.json (private witness) for proving locally."""
    try:
        d = Hasher().derive(email, secret)
    except InvalidInput as e:
        _fail(e)
    text = _pretty(d.circuit_inputs())
    if out is None:
        typer.echo(text)
    else:
        out.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"wrote {out} (leaf {d.leaf_hex})")


@app.command("parse-id")
def parse_id(text: str = typer.Argument(..., help='e.g. "42" or "UNIQ-000042"')) -> None:
    """Parse an identifier and print both encodings."""
    codec = IdentifierCodec(get_settings().id_prefix)
    try:
        typer.echo(_pretty(codec.parse(text).to_dict()))
    except InvalidInput as e:
        _fail(e)


@app.command("format-id")
def format_id(value: int = typer.Argument(..., help="Positive identifier")) -> None:
    """Print the display form of an identifier."""
    codec = IdentifierCodec(get_settings().id_prefix)
    try:
        typer.echo(codec.format(value))
    except InvalidInput as e:
        _fail(e)


@app.command()
def resolve(
    leaf_hex: str = typer.Argument(..., metavar="LEAF", help="bytes32 leaf (0x...)"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Override UNIQID_RPC_URL"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Override UNIQID_CONTRACT_ADDRESS"),
) -> None:
    """Look up the identifier the registry holds for LEAF."""
    cfg = _registry_config(get_settings(), rpc_url, contract)

    async def _go():
        async with EthRegistryReader(cfg) as reader:
            return await reader.resolve(leaf_hex)

    try:
        resolved = asyncio.run(_go())
    except InvalidInput as e:
        _fail(e)
    except RegistryUnavailable as e:
        _fail(e, EXIT_UNAVAILABLE)

    if isinstance(resolved, Unregistered):
        typer.echo("unregistered")
        raise typer.Exit(EXIT_UNREGISTERED)
    typer.echo(_pretty(resolved.to_dict()))


@app.command()
def verify(
    claimed: str = typer.Option(..., "--id", help="Claimed identifier (42 or UNIQ-000042)"),
    email: Optional[str] = typer.Option(None, "--email"),
    secret: Optional[str] = typer.Option(None, "--secret"),
    leaf_hex: Optional[str] = typer.Option(None, "--leaf", help="bytes32 leaf for proof requests"),
    proof: Optional[Path] = typer.Option(None, "--proof", exists=True, dir_okay=False, help="snarkjs proof.json"),
    vk: Optional[Path] = typer.Option(None, "--vk", help="Override UNIQID_VK_PATH"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url"),
    contract: Optional[str] = typer.Option(None, "--contract"),
) -> None:
    """Verify a credential or a (leaf, proof) pair against a claimed identifier."""
    settings = get_settings()
    body: Dict[str, Any] = {"claimedIdentifier": claimed}
    if email is not None or secret is not None:
        body["credential"] = {"email": email or "", "secret": secret or ""}
    if leaf_hex is not None:
        body["leaf"] = leaf_hex
    if proof is not None:
        try:
            body["proof"] = json.loads(proof.read_text(encoding="utf-8"))
        except ValueError as e:
            typer.echo(f"Error: {proof} is not JSON: {e}", err=True)
            raise typer.Exit(1)

    try:
        request = VerificationRequest.from_mapping(body)
    except InvalidInput as e:
        _fail(e)

    cfg = _registry_config(settings, rpc_url, contract)
    vk_path = vk or settings.vk_path

    async def _go():
        verifier = None
        if request.credential is None and vk_path is not None:
            verifier = Groth16ProofVerifier.from_file(
                vk_path, timeout_s=settings.verify_timeout_s, max_workers=settings.verify_workers
            )
        try:
            async with EthRegistryReader(cfg) as reader:
                orch = VerificationOrchestrator(
                    registry=reader,
                    verifier=verifier,
                    codec=IdentifierCodec(settings.id_prefix),
                    accept_credentials=settings.accept_credentials,
                )
                return await orch.verify(request)
        finally:
            if verifier is not None:
                verifier.close()

    try:
        verdict = asyncio.run(_go())
    except UniqIdError as e:
        # VerifierUnavailable at startup (missing/invalid key)
        _fail(e)

    typer.echo(encode_verdict(verdict).decode("utf-8"))
    raise typer.Exit(0 if isinstance(verdict, Accepted) else 1)


if __name__ == "__main__":
    app()
