r"""
Deterministic generator states, one per replicate sequence index.

A state is the mapping returned by ``bit_generator.state`` in NumPy. The
orchestrator treats it as opaque: it asks a :class:`StateStore` for the state of
an index and hands it to :func:`make_generator`.

This module provides:

Protocol
    :class:`StateStore` — ``load(index) -> state``

Stores
    :class:`MemoryStateStore` — list-backed store
    :class:`DirectoryStateStore` — one JSON file per index on disk

Functions
    :func:`generate_states` — produce independent, non-overlapping states
    :func:`make_generator` — rebuild a :class:`numpy.random.Generator` from a state

Example
-------
>>> store = MemoryStateStore(generate_states(3, seed=1))
>>> rng = make_generator(store.load(2))
>>> 0.0 <= rng.random() < 1.0
True
"""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any, Mapping, Protocol, Sequence

import numpy as np

from .exceptions import SeedUnavailable

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_SEED",
    "DEFAULT_BIT_GENERATOR",
    "StateStore",
    "MemoryStateStore",
    "DirectoryStateStore",
    "generate_states",
    "make_generator",
]

# Unhashed seed with as many ones as zeros.
DEFAULT_SEED = 0b10101010101010101010101010101010
DEFAULT_BIT_GENERATOR = "MT19937"
_JUMPABLE_BIT_GENERATORS = ("MT19937", "PCG64", "PCG64DXSM", "Philox")
_SUPPORTED_BIT_GENERATORS = _JUMPABLE_BIT_GENERATORS + ("SFC64",)


class StateStore(Protocol):
    """Source of deterministic generator states keyed by sequence index."""

    def load(self, index: int) -> dict[str, Any]: ...


def generate_states(
    count: int,
    seed: int | None = DEFAULT_SEED,
    bit_generator: str = DEFAULT_BIT_GENERATOR,
) -> list[dict[str, Any]]:
    r"""
    Produce ``count`` independent generator states.

    State 0 is the freshly seeded generator; every following state is the
    previous one advanced with :meth:`~numpy.random.BitGenerator.jumped`, so the
    streams do not overlap for any realistic point budget.

    Parameters
    ----------
    count : int
        Number of states (one per replicate).
    seed : int or None, default ``0xAAAAAAAA``
        Seed for the base bit generator.
    bit_generator : str, default ``"MT19937"``
        Name of a jumpable NumPy bit generator.

    Returns
    -------
    list of dict
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if bit_generator not in _JUMPABLE_BIT_GENERATORS:
        raise ValueError(f"bit_generator must be a jumpable NumPy bit generator, got '{bit_generator}'")

    current = getattr(np.random, bit_generator)(seed)
    states = []
    for i in range(count):
        logger.debug("Computing state %02d (%s)...", i, bit_generator)
        states.append(copy.deepcopy(current.state))
        current = current.jumped()
    return states


def make_generator(state: Mapping[str, Any], index: int = -1) -> np.random.Generator:
    r"""
    Rebuild a :class:`numpy.random.Generator` positioned exactly at ``state``.

    Raises
    ------
    SeedUnavailable
        If the state names an unknown bit generator or cannot be installed.
    """
    try:
        name = state["bit_generator"]
    except (KeyError, TypeError) as e:
        raise SeedUnavailable(index, "state has no 'bit_generator' entry") from e
    if name not in _SUPPORTED_BIT_GENERATORS:
        raise SeedUnavailable(index, f"unsupported bit generator '{name}'")

    bitgen = getattr(np.random, name)()
    try:
        bitgen.state = dict(state)
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise SeedUnavailable(index, f"corrupt {name} state: {e}") from e
    return np.random.Generator(bitgen)


class MemoryStateStore:
    """
    In-memory :class:`StateStore` over a sequence of states.

    Each :meth:`load` returns a deep copy, so callers can never alter the
    stored blobs.
    """

    def __init__(self, states: Sequence[Mapping[str, Any]]):
        self._states = [copy.deepcopy(dict(s)) for s in states]

    def __len__(self) -> int:
        return len(self._states)

    def load(self, index: int) -> dict[str, Any]:
        if not 0 <= index < len(self._states):
            raise SeedUnavailable(index, f"store holds {len(self._states)} states")
        return copy.deepcopy(self._states[index])


def _to_jsonable(obj: Any) -> Any:
    if isinstance(obj, np.ndarray):
        return {"__ndarray__": obj.tolist(), "dtype": str(obj.dtype)}
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, Mapping):
        return {k: _to_jsonable(v) for k, v in obj.items()}
    return obj


def _from_jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        if "__ndarray__" in obj:
            return np.asarray(obj["__ndarray__"], dtype=obj["dtype"])
        return {k: _from_jsonable(v) for k, v in obj.items()}
    return obj


class DirectoryStateStore:
    r"""
    :class:`StateStore` persisted as one JSON file per index.

    Files are named ``status-{index:02d}.json`` inside ``path``.

    Parameters
    ----------
    path : str or os.PathLike
        Directory holding the state files.
    """

    _PATTERN = "status-{index:02d}.json"

    def __init__(self, path: str | os.PathLike):
        self.path = os.fspath(path)

    def file_for(self, index: int) -> str:
        return os.path.join(self.path, self._PATTERN.format(index=index))

    def load(self, index: int) -> dict[str, Any]:
        if index < 0:
            raise SeedUnavailable(index, "sequence index must be non-negative")
        fname = self.file_for(index)
        logger.debug("loading '%s'...", fname)
        try:
            with open(fname, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError as e:
            raise SeedUnavailable(index, f"missing state file '{fname}'") from e
        except (OSError, ValueError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            raise SeedUnavailable(index, f"unreadable state file '{fname}': {e}") from e
        if not isinstance(data, dict) or "bit_generator" not in data:
            raise SeedUnavailable(index, f"malformed state file '{fname}'")
        try:
            return _from_jsonable(data)
        except (TypeError, KeyError, ValueError) as e:
            raise SeedUnavailable(index, f"malformed state file '{fname}': {e}") from e

    def save(self, index: int, state: Mapping[str, Any]) -> str:
        """Write ``state`` for ``index`` and return the file name."""
        os.makedirs(self.path, exist_ok=True)
        fname = self.file_for(index)
        with open(fname, "w", encoding="utf-8") as fh:
            json.dump(_to_jsonable(state), fh)
        logger.debug("saved %s", fname)
        return fname

    def save_all(self, states: Sequence[Mapping[str, Any]]) -> list[str]:
        """Write every state in order, index ``i`` to ``status-{i:02d}.json``."""
        return [self.save(i, s) for i, s in enumerate(states)]
