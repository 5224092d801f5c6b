import json
from pathlib import Path
from typing import Union

import structlog

from token_deployer.exceptions import ArtifactFileError, ArtifactFileMissing
from token_deployer.types import ContractArtifact

log = structlog.get_logger(__name__)


def load_contract_artifact(artifact_file: Union[str, Path]) -> ContractArtifact:
    """Load the compiled token contract from disk.

    The file is the JSON artifact written by the contract toolchain, and
    should contain at least::

        {
            "abi": [<abi entries>],
            "bytecode": "0x<creation bytecode>"
        }

    :raises ArtifactFileError:
        if the file's contents cannot be loaded using the :mod:`json`
        module, or an expected key is absent or malformed.

    :raises ArtifactFileMissing:
        if no file exists at the given path.
    """
    try:
        with open(artifact_file) as handler:
            data = json.load(handler)
    except json.JSONDecodeError as e:
        raise ArtifactFileError("Contract artifact file corrupted!") from e
    except FileNotFoundError as e:
        raise ArtifactFileMissing(f"Contract artifact file {artifact_file} does not exist!") from e

    if not isinstance(data, dict) or not all(k in data for k in ("abi", "bytecode")):
        raise ArtifactFileError("Contract artifact file is missing one or more required keys!")

    abi, bytecode = data["abi"], data["bytecode"]
    # Some toolchains nest the creation code, i.e. {"bytecode": {"object": "..."}}.
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(abi, list):
        raise ArtifactFileError("Contract ABI must be a list!")
    if not isinstance(bytecode, str) or not bytecode:
        raise ArtifactFileError("Contract bytecode must be a non-empty hex string!")
    if not bytecode.startswith("0x"):
        bytecode = f"0x{bytecode}"

    log.debug("Loaded contract artifact", path=str(artifact_file), abi_entries=len(abi))
    return ContractArtifact(abi=abi, bytecode=bytecode)
