import asyncio
from types import SimpleNamespace

import pytest

from fourmica_sdk import bls
from fourmica_sdk.bls import (
    BlsBackend,
    signature_to_words,
    signature_to_words_async,
    split_field_element,
)
from fourmica_sdk.errors import VerificationError

# Compressed BLS12-381 G2 generator.
G2_GENERATOR = (
    "93e02b6052719f607dacd3a088274f65596bd0d09920b61ab5da61bbdc7f5049"
    "334cf11213945d57e5ac7d055d042b7e024aa2b2f08f0a91260805272dc51051"
    "c6e47ad4fa403b02b4510b647ae3d1770bac0326a805bbefd48056c8c121bdb8"
)


def fake_backend(point=None, in_subgroup=True):
    x = SimpleNamespace(coeffs=(1, 2))
    y = SimpleNamespace(c0=3, c1=SimpleNamespace(n=4))
    return BlsBackend(
        name="fake",
        decompress=lambda signature: point or (x, y),
        normalize=lambda p: p,
        is_inf=lambda p: False,
        subgroup_check=lambda p: in_subgroup,
    )


def test_split_field_element_pads_high_half():
    value = int.from_bytes(bytes(range(1, 49)), "big")
    hi, lo = split_field_element(value)
    assert hi == b"\x00" * 16 + bytes(range(1, 17))
    assert lo == bytes(range(17, 49))


def test_signature_to_words_rejects_short_signature():
    with pytest.raises(VerificationError, match="invalid BLS signature"):
        signature_to_words("0x0102")


@pytest.mark.asyncio
async def test_signature_to_words_async_rejects_short_signature():
    with pytest.raises(VerificationError, match="invalid BLS signature"):
        await signature_to_words_async(b"\x01\x02")


@pytest.mark.parametrize("value", [None, 123, ["aa"]])
def test_signature_to_words_rejects_non_hex_types(value):
    with pytest.raises(VerificationError):
        signature_to_words(value)


def test_words_follow_coordinate_order(monkeypatch):
    monkeypatch.setattr(bls, "_backend", fake_backend())
    words = signature_to_words("00" * 96)
    assert len(words) == 8
    assert all(len(word) == 32 for word in words)
    as_ints = [int.from_bytes(word, "big") for word in words]
    assert as_ints == [0, 1, 0, 2, 0, 3, 0, 4]


def test_missing_backend_is_reported_as_configuration_problem(monkeypatch):
    def unavailable():
        raise ImportError("No module named 'py_ecc'")

    monkeypatch.setattr(bls, "_backend", None)
    monkeypatch.setattr(bls, "_SYNC_STRATEGIES", (unavailable,))
    with pytest.raises(VerificationError, match="BLS decoding requires py_ecc"):
        signature_to_words("00" * 96)
    # failures are not cached
    monkeypatch.setattr(bls, "_SYNC_STRATEGIES", (fake_backend,))
    assert len(signature_to_words("00" * 96)) == 8


@pytest.mark.asyncio
async def test_async_loader_tries_fallback_strategies_once(monkeypatch):
    calls = {"primary": 0, "fallback": 0}

    def primary():
        calls["primary"] += 1
        raise ImportError("primary path unavailable")

    def fallback():
        calls["fallback"] += 1
        return fake_backend()

    monkeypatch.setattr(bls, "_backend", None)
    monkeypatch.setattr(bls, "_loading", None)
    monkeypatch.setattr(bls, "_ASYNC_STRATEGIES", (primary, fallback))

    results = await asyncio.gather(
        signature_to_words_async("00" * 96),
        signature_to_words_async("00" * 96),
    )
    assert results[0] == results[1]
    assert calls == {"primary": 1, "fallback": 1}


def test_generator_point_words():
    pytest.importorskip("py_ecc")
    from py_ecc.optimized_bls12_381 import G2, normalize

    words = signature_to_words("0x" + G2_GENERATOR)
    assert len(words) == 8
    assert all(len(word) == 32 for word in words)
    assert words[0] == b"\x00" * 16 + bytes.fromhex("024aa2b2f08f0a91260805272dc51051")
    assert words[1] == bytes.fromhex(
        "c6e47ad4fa403b02b4510b647ae3d1770bac0326a805bbefd48056c8c121bdb8"
    )
    assert words[2] == b"\x00" * 16 + bytes.fromhex("13e02b6052719f607dacd3a088274f65")

    x, y = normalize(G2)
    expected = []
    for coord in (*x.coeffs, *y.coeffs):
        expected.extend(split_field_element(getattr(coord, "n", coord)))
    assert words == expected


@pytest.mark.asyncio
async def test_generator_point_words_async_matches_sync():
    pytest.importorskip("py_ecc")
    assert await signature_to_words_async(G2_GENERATOR) == signature_to_words(G2_GENERATOR)


def test_point_at_infinity_is_rejected():
    pytest.importorskip("py_ecc")
    infinity = "c0" + "00" * 95
    with pytest.raises(VerificationError, match="invalid BLS signature"):
        signature_to_words(infinity)


def test_point_outside_subgroup_is_rejected_before_normalizing(monkeypatch):
    monkeypatch.setattr(bls, "_backend", fake_backend(in_subgroup=False))
    with pytest.raises(VerificationError, match="point not in G2 subgroup"):
        signature_to_words("00" * 96)


# On the curve but not in the prime-order subgroup.
NON_SUBGROUP_POINT = "8" + "1" * 191


def test_non_subgroup_point_is_rejected():
    pytest.importorskip("py_ecc")
    with pytest.raises(VerificationError, match="point not in G2 subgroup"):
        signature_to_words(NON_SUBGROUP_POINT)


@pytest.mark.asyncio
async def test_non_subgroup_point_is_rejected_async():
    pytest.importorskip("py_ecc")
    with pytest.raises(VerificationError, match="point not in G2 subgroup"):
        await signature_to_words_async(NON_SUBGROUP_POINT)
