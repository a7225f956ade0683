"""Expand compressed BLS12-381 G2 signatures into contract words.

The on-chain verifier takes a G2 point as eight 32-byte words: every Fp
coordinate is 48 bytes wide, so each one is split into a zero-padded high
half and a 32-byte low half. Decompression needs the optional ``py_ecc``
backend (``pip install fourmica-sdk[bls]``), which is imported lazily and
memoized for the whole process.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .errors import ValidationError, VerificationError
from .utils import hex_to_bytes

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 96
FIELD_ELEMENT_LENGTH = 48
WORD_LENGTH = 32


@dataclass(frozen=True)
class BlsBackend:
    name: str
    decompress: Callable[[bytes], Any]
    normalize: Callable[[Any], Tuple[Any, Any]]
    is_inf: Callable[[Any], bool]
    subgroup_check: Callable[[Any], bool]


def _g2_primitives_backend() -> BlsBackend:
    g2 = importlib.import_module("py_ecc.bls.g2_primitives")
    curve = importlib.import_module("py_ecc.optimized_bls12_381")
    return BlsBackend(
        name="py_ecc.bls.g2_primitives",
        decompress=g2.signature_to_G2,
        normalize=curve.normalize,
        is_inf=curve.is_inf,
        subgroup_check=g2.subgroup_check,
    )


def _point_compression_backend() -> BlsBackend:
    compression = importlib.import_module("py_ecc.bls.point_compression")
    curve = importlib.import_module("py_ecc.optimized_bls12_381")

    def subgroup_check(point: Any) -> bool:
        return curve.is_inf(curve.multiply(point, curve.curve_order))

    def decompress(signature: bytes) -> Any:
        z1 = int.from_bytes(signature[:FIELD_ELEMENT_LENGTH], "big")
        z2 = int.from_bytes(signature[FIELD_ELEMENT_LENGTH:], "big")
        return compression.decompress_G2((z1, z2))

    return BlsBackend(
        name="py_ecc.bls.point_compression",
        decompress=decompress,
        normalize=curve.normalize,
        is_inf=curve.is_inf,
        subgroup_check=subgroup_check,
    )


_SYNC_STRATEGIES: Sequence[Callable[[], BlsBackend]] = (_g2_primitives_backend,)
_ASYNC_STRATEGIES: Sequence[Callable[[], BlsBackend]] = (
    _g2_primitives_backend,
    _point_compression_backend,
)

_backend: Optional[BlsBackend] = None
_backend_lock = threading.Lock()
_loading: Optional["asyncio.Task[BlsBackend]"] = None


def _backend_unavailable(exc: Optional[BaseException]) -> VerificationError:
    detail = f" ({exc})" if exc is not None else ""
    return VerificationError(
        "BLS decoding requires py_ecc; install fourmica-sdk[bls] to enable remuneration" + detail
    )


def _load_first(strategies: Sequence[Callable[[], BlsBackend]]) -> BlsBackend:
    last_error: Optional[BaseException] = None
    for strategy in strategies:
        try:
            return strategy()
        except (ImportError, AttributeError) as exc:
            last_error = exc
    logger.debug("BLS backend unavailable: %s", last_error)
    raise _backend_unavailable(last_error)


def _remember(backend: BlsBackend) -> BlsBackend:
    global _backend
    with _backend_lock:
        if _backend is None:
            _backend = backend
            logger.debug("Loaded BLS backend %s", backend.name)
        return _backend


def load_backend() -> BlsBackend:
    if _backend is not None:
        return _backend
    return _remember(_load_first(_SYNC_STRATEGIES))


async def _load_backend_off_loop() -> BlsBackend:
    global _loading
    try:
        backend = await asyncio.to_thread(_load_first, _ASYNC_STRATEGIES)
    finally:
        _loading = None
    return _remember(backend)


async def load_backend_async() -> BlsBackend:
    """Load the backend without blocking the loop; concurrent callers share one attempt."""
    global _loading
    if _backend is not None:
        return _backend
    loop = asyncio.get_running_loop()
    task = _loading
    if task is None or task.get_loop() is not loop:
        task = loop.create_task(_load_backend_off_loop())
        _loading = task
    return await asyncio.shield(task)


def _signature_bytes(signature: Any) -> bytes:
    if not isinstance(signature, (str, bytes, bytearray, memoryview)):
        raise VerificationError(
            f"expected signature hex string or bytes, got {type(signature).__name__}"
        )
    try:
        raw = hex_to_bytes(signature)
    except ValidationError as exc:
        raise VerificationError(f"invalid BLS signature: {exc}") from exc
    if len(raw) != SIGNATURE_LENGTH:
        raise VerificationError(
            f"invalid BLS signature: expected {SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def _field_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    n = getattr(value, "n", None)
    if isinstance(n, int):
        return n
    raise VerificationError("invalid BLS field element")


def _fp2_components(value: Any) -> Tuple[int, int]:
    coeffs = getattr(value, "coeffs", None)
    if coeffs is not None and len(coeffs) >= 2:
        return _field_int(coeffs[0]), _field_int(coeffs[1])
    if hasattr(value, "c0") and hasattr(value, "c1"):
        return _field_int(value.c0), _field_int(value.c1)
    raise VerificationError("invalid BLS field element")


def split_field_element(value: int) -> Tuple[bytes, bytes]:
    raw = value.to_bytes(FIELD_ELEMENT_LENGTH, "big")
    hi_len = FIELD_ELEMENT_LENGTH - WORD_LENGTH
    return raw[:hi_len].rjust(WORD_LENGTH, b"\x00"), raw[hi_len:]


def _signature_to_words_with(backend: BlsBackend, signature: bytes) -> List[bytes]:
    try:
        point = backend.decompress(signature)
        if backend.is_inf(point):
            raise VerificationError("point at infinity")
        if not backend.subgroup_check(point):
            raise VerificationError("point not in G2 subgroup")
        x, y = backend.normalize(point)
        coords = (*_fp2_components(x), *_fp2_components(y))
        words: List[bytes] = []
        for coord in coords:
            words.extend(split_field_element(coord))
        return words
    except (VerificationError, ValueError, ArithmeticError, TypeError, AttributeError) as exc:
        raise VerificationError(f"invalid BLS signature: {exc}") from exc


def signature_to_words(signature: Any) -> List[bytes]:
    """Decompress ``signature`` (96-byte G2 point, hex or bytes) into eight 32-byte words.

    Word order is x.c0 hi/lo, x.c1 hi/lo, y.c0 hi/lo, y.c1 hi/lo.
    """
    raw = _signature_bytes(signature)
    return _signature_to_words_with(load_backend(), raw)


async def signature_to_words_async(signature: Any) -> List[bytes]:
    """Async variant of :func:`signature_to_words` that tries more backend import paths."""
    raw = _signature_bytes(signature)
    backend = await load_backend_async()
    return _signature_to_words_with(backend, raw)
