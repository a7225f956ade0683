"""Top-level SDK client wiring RPC, contract gateway, signer and auth together."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..auth import AuthSession, AuthTokens
from ..config import Config
from ..contract import ContractGateway
from ..errors import AuthMissingConfigError, ClientInitializationError, ContractError
from ..rpc import RpcProxy
from ..signing import CorePublicParameters, PaymentSigner
from .recipient import RecipientClient
from .user import UserClient

logger = logging.getLogger(__name__)


class Client:
    def __init__(
        self,
        rpc: RpcProxy,
        params: CorePublicParameters,
        gateway: ContractGateway,
        guarantee_domain: bytes,
        signer: PaymentSigner,
        auth_session: Optional[AuthSession] = None,
    ) -> None:
        self.rpc = rpc
        self.params = params
        self.gateway = gateway
        self.guarantee_domain = guarantee_domain
        self.signer = signer
        self._auth_session = auth_session
        self.user = UserClient(self)
        self.recipient = RecipientClient(self)

    @classmethod
    async def new(
        cls, cfg: Config, *, http_client: Optional[httpx.AsyncClient] = None
    ) -> "Client":
        rpc = RpcProxy(cfg.rpc_url, cfg.admin_api_key, http_client=http_client)
        try:
            params = await rpc.get_public_params()
            gateway = await ContractGateway.create(
                cfg.ethereum_http_rpc_url or params.ethereum_http_rpc_url,
                cfg.signer,
                cfg.contract_address or params.contract_address,
                params.chain_id,
            )
            guarantee_domain = await gateway.get_guarantee_domain()
        except ContractError as exc:
            await rpc.aclose()
            raise ClientInitializationError(str(exc)) from exc
        except Exception:
            await rpc.aclose()
            raise

        auth_session = None
        if cfg.bearer_token:
            rpc.with_bearer_token(cfg.bearer_token)
        elif cfg.auth_enabled:
            auth_session = AuthSession(
                cfg.auth_url,
                cfg.wallet_private_key,
                refresh_margin_secs=cfg.auth_refresh_margin_secs,
                http_client=http_client,
            )
            rpc.with_token_provider(auth_session.access_token)

        logger.debug("4mica client ready (chain %s)", params.chain_id)
        return cls(rpc, params, gateway, guarantee_domain, PaymentSigner(cfg.signer), auth_session)

    async def login(self) -> AuthTokens:
        if self._auth_session is None:
            raise AuthMissingConfigError("auth is not enabled")
        return await self._auth_session.login()

    async def aclose(self) -> None:
        await self.rpc.aclose()
        if self._auth_session is not None:
            await self._auth_session.aclose()


__all__ = ["Client", "RecipientClient", "UserClient"]
