"""
tinyevo Genome Codec Module

This module converts genomes to and from their persisted representations.

Two formats are supported:

Text format, one record per line:
    <inputs> <outputs> <hidden> <activation name>
    <source> <target> <weight> <bias>
    <source> <target> <weight> <bias>
    ...
Floats are written with repr(), which round-trips exactly. Blank lines are ignored.

JSON format: the dictionary produced by Genome.to_dict(), serialized with json.

Functions:
    encode_text(genome) / decode_text(text): text format
    encode_json(genome) / decode_json(text): JSON format
    save(genome, path) / load(path):         file I/O, format chosen by file suffix
"""

import json
from pathlib import Path

from tinyevo.errors          import CodecError
from tinyevo.genotype.genome import Genome

def encode_text(genome: Genome) -> str:
    """
    Encode a genome in the text format.

    Raises:
        CodecError: If the genome's activation function is not in the activation catalog
    """
    genome_dict = _to_dict(genome)

    lines = [f"{genome_dict['inputs']} {genome_dict['outputs']} {genome_dict['hidden']} {genome_dict['activation']}"]
    for synapse in genome_dict["synapses"]:
        lines.append(f"{synapse['from']} {synapse['to']} {synapse['weight']!r} {synapse['bias']!r}")
    return "\n".join(lines) + "\n"

def decode_text(text: str) -> Genome:
    """
    Decode a genome from the text format.

    Raises:
        CodecError: If the text is malformed or describes an invalid genome
    """
    lines = [line.split() for line in text.splitlines() if line.strip()]
    if not lines:
        raise CodecError("Empty genome description")

    header = lines[0]
    if len(header) != 4:
        raise CodecError(f"Header must have 4 fields (inputs outputs hidden activation), got {len(header)}")

    try:
        genome_dict = {
            "inputs"    : int(header[0]),
            "outputs"   : int(header[1]),
            "hidden"    : int(header[2]),
            "activation": header[3],
            "synapses"  : []
        }
        for line_number, fields in enumerate(lines[1:], start=2):
            if len(fields) != 4:
                raise CodecError(f"Line {line_number}: synapse must have 4 fields "
                                 f"(source target weight bias), got {len(fields)}")
            genome_dict["synapses"].append({
                "from"  : int(fields[0]),
                "to"    : int(fields[1]),
                "weight": float(fields[2]),
                "bias"  : float(fields[3])
            })
    except CodecError:
        raise
    except ValueError as e:
        raise CodecError(f"Malformed genome description: {e}") from e

    return _from_dict(genome_dict)

def encode_json(genome: Genome, indent: int | None = None) -> str:
    """
    Encode a genome in the JSON format.

    Raises:
        CodecError: If the genome's activation function is not in the activation catalog
    """
    return json.dumps(_to_dict(genome), indent=indent)

def decode_json(text: str) -> Genome:
    """
    Decode a genome from the JSON format.

    Raises:
        CodecError: If the text is not valid JSON or describes an invalid genome
    """
    try:
        genome_dict = json.loads(text)
    except json.JSONDecodeError as e:
        raise CodecError(f"Invalid JSON: {e}") from e
    if not isinstance(genome_dict, dict):
        raise CodecError(f"Expected a JSON object, got {type(genome_dict).__name__}")
    return _from_dict(genome_dict)

def save(genome: Genome, path: str | Path) -> None:
    """
    Write a genome to a file. Files ending in '.json' use the JSON format,
    all other files use the text format.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        path.write_text(encode_json(genome, indent=2))
    else:
        path.write_text(encode_text(genome))

def load(path: str | Path) -> Genome:
    """
    Read a genome from a file written by save().

    Raises:
        FileNotFoundError: If the file does not exist
        CodecError:        If the file content is malformed
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        return decode_json(path.read_text())
    return decode_text(path.read_text())

def _to_dict(genome: Genome) -> dict:
    try:
        return genome.to_dict()
    except ValueError as e:
        raise CodecError(str(e)) from e

def _from_dict(genome_dict: dict) -> Genome:
    try:
        return Genome.from_dict(genome_dict)
    except KeyError as e:
        raise CodecError(f"Missing field {e}") from e
    except (ValueError, TypeError) as e:
        raise CodecError(str(e)) from e
