from types import SimpleNamespace

import pytest

from fourmica_sdk.client import Client
from fourmica_sdk.errors import VerificationError
from fourmica_sdk.guarantee import encode_guarantee_claims
from fourmica_sdk.models import (
    BLSCert,
    PaymentGuaranteeClaims,
    PaymentGuaranteeRequestClaims,
    SigningScheme,
)

USER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
RECIPIENT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
ASSET = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"
DOMAIN = bytes(range(32))
SIGNATURE = "0x" + "ab" * 96
WORDS = [bytes([i]) * 32 for i in range(8)]


class StubRpc:
    def __init__(self, responses=None):
        self.calls = []
        self.responses = responses or {}

    def __getattr__(self, name):
        async def call(*args):
            self.calls.append((name, args))
            return self.responses.get(name)

        return call


class StubGateway:
    def __init__(self):
        self.remunerations = []

    async def remunerate(self, claims_blob, words, wait_options=None):
        self.remunerations.append((claims_blob, words, wait_options))
        return {"status": 1}

    async def get_payment_status(self, tab_id):
        return {"paid": "0x10", "remunerated": False, "asset": ASSET}


def make_client(domain=DOMAIN, rpc=None):
    return Client(
        rpc=rpc or StubRpc(),
        params=SimpleNamespace(chain_id=1),
        gateway=StubGateway(),
        guarantee_domain=domain,
        signer=SimpleNamespace(address=RECIPIENT.lower()),
    )


def make_cert(domain=DOMAIN, signature=SIGNATURE):
    claims = PaymentGuaranteeClaims(
        domain=domain,
        user_address=USER,
        recipient_address=RECIPIENT,
        tab_id=5,
        req_id=2,
        amount=100,
        total_amount=300,
        asset_address=ASSET,
        timestamp=1_700_000_000,
    )
    return BLSCert(claims=encode_guarantee_claims(claims), signature=signature)


@pytest.fixture
def words_calls(monkeypatch):
    calls = []

    async def fake_words(signature):
        calls.append(signature)
        return list(WORDS)

    monkeypatch.setattr("fourmica_sdk.client.recipient.signature_to_words_async", fake_words)
    return calls


def test_verify_payment_guarantee_returns_claims():
    claims = make_client().recipient.verify_payment_guarantee(make_cert())
    assert claims.tab_id == 5
    assert claims.total_amount == 300
    assert claims.domain == DOMAIN


def test_verify_payment_guarantee_rejects_foreign_domain():
    with pytest.raises(VerificationError, match="guarantee domain mismatch"):
        make_client().recipient.verify_payment_guarantee(make_cert(domain=b"\x01" * 32))


@pytest.mark.asyncio
async def test_remunerate_passes_claims_and_words_to_gateway(words_calls):
    client = make_client()
    cert = make_cert()
    receipt = await client.recipient.remunerate(cert)
    assert receipt == {"status": 1}
    assert words_calls == [SIGNATURE]
    claims_blob, words, _ = client.gateway.remunerations[0]
    assert claims_blob == bytes.fromhex(cert.claims[2:])
    assert words == WORDS


@pytest.mark.asyncio
async def test_remunerate_domain_mismatch_skips_decompression_and_gateway(words_calls):
    client = make_client()
    with pytest.raises(VerificationError, match="guarantee domain mismatch"):
        await client.recipient.remunerate(make_cert(domain=b"\x02" * 32))
    assert words_calls == []
    assert client.gateway.remunerations == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "cert, message",
    [
        (BLSCert(claims=None, signature=SIGNATURE), "certificate.claims must be a hex string, got None"),
        (BLSCert(claims="", signature=SIGNATURE), "certificate.claims must be a hex string, got empty string"),
        (BLSCert(claims="0xzz", signature=SIGNATURE), "got non-hex string"),
        (BLSCert(claims=["0x00"], signature=SIGNATURE), "got list(len=1)"),
        (BLSCert(claims="0x00", signature={"x": 1}), "certificate.signature must be a hex string, got dict(keys=x)"),
        (BLSCert(claims="0x00", signature=42), "certificate.signature must be a hex string, got int"),
        (BLSCert(claims="0x", signature=SIGNATURE), "certificate.claims must be a hex string, got empty hex string"),
        (BLSCert(claims="0x00", signature="0X"), "certificate.signature must be a hex string, got empty hex string"),
    ],
)
async def test_remunerate_type_checks_certificate_fields(cert, message, words_calls):
    client = make_client()
    with pytest.raises(VerificationError) as excinfo:
        await client.recipient.remunerate(cert)
    assert message in str(excinfo.value)
    assert words_calls == []
    assert client.gateway.remunerations == []


@pytest.mark.asyncio
async def test_create_tab_normalizes_addresses_and_reads_id():
    rpc = StubRpc({"create_payment_tab": {"id": "0x2a"}})
    client = make_client(rpc=rpc)
    tab_id = await client.recipient.create_tab(USER.lower(), RECIPIENT.lower(), ttl=60)
    assert tab_id == 42
    name, (body,) = rpc.calls[0]
    assert name == "create_payment_tab"
    assert body == {
        "user_address": USER,
        "recipient_address": RECIPIENT,
        "erc20_token": None,
        "ttl": 60,
    }


@pytest.mark.asyncio
async def test_issue_payment_guarantee_posts_payload():
    rpc = StubRpc({"issue_guarantee": {"claims": "0x01", "signature": "0x02"}})
    client = make_client(rpc=rpc)
    claims = PaymentGuaranteeRequestClaims.new(USER, RECIPIENT, 5, 100, 1_700_000_000)
    cert = await client.recipient.issue_payment_guarantee(claims, "0xsig", SigningScheme.EIP712)
    assert cert == BLSCert(claims="0x01", signature="0x02")
    _, (payload,) = rpc.calls[0]
    assert payload["scheme"] == "eip712"
    assert payload["claims"]["tab_id"] == "0x5"


@pytest.mark.asyncio
async def test_listing_methods_use_recipient_address_and_build_models():
    tab = {"tab_id": "0x5", "user_address": USER, "status": "open"}
    rpc = StubRpc(
        {
            "list_recipient_tabs": [tab],
            "list_settled_tabs": [tab],
            "get_tab": None,
            "get_latest_guarantee": {"tab_id": "0x5", "req_id": "0x1", "amount": "10"},
        }
    )
    client = make_client(rpc=rpc)

    tabs = await client.recipient.list_recipient_tabs(["pending"])
    assert tabs[0].tab_id == 5
    assert rpc.calls[0] == ("list_recipient_tabs", (RECIPIENT, ["pending"]))

    assert (await client.recipient.list_settled_tabs())[0].status == "open"
    assert await client.recipient.get_tab(5) is None
    latest = await client.recipient.get_latest_guarantee("0x5")
    assert (latest.req_id, latest.amount) == (1, 10)
    assert await client.recipient.list_recipient_payments() == []


@pytest.mark.asyncio
async def test_tab_payment_status_from_gateway():
    status = await make_client().recipient.get_tab_payment_status(5)
    assert status.paid == 16
    assert status.remunerated is False
