"""Treatment protocol dispatch.

Routes a tooth to the protocol generator for its treatment type:

- resina: ``clients.invoke_resin`` (stratification protocol generation)
- porcelana: ``clients.invoke_cementation`` (cementation protocol generation)
- specialty types: a template protocol from get_generic_protocol(), saved
  via ``clients.save_generic_protocol``

Clients are injected so the same routing serves the initial submit, retries
and budget regeneration. Client calls are retried on connection errors and
timeouts; any other error, or the last transient one, propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from protocol_engine.schemas.protocol import GenericProtocol, ToothData
from protocol_engine.settings import EngineConfig
from protocol_engine.tools.generic_protocol import get_generic_protocol
from protocol_engine.tools.treatment_config import (
    SPECIAL_TREATMENT_TYPES,
    normalize_treatment_type,
)

logger = logging.getLogger(__name__)

DEFAULT_CERAMIC_TYPE = "Dissilicato de lítio"

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError)


class ProtocolDispatchError(ValueError):
    """Dispatch request is missing its parameters or names no known treatment."""


class ProtocolClients(Protocol):
    """Data-layer adapters used by dispatch_treatment_protocol()."""

    async def invoke_resin(self, payload: dict[str, Any]) -> None: ...

    async def invoke_cementation(self, payload: dict[str, Any]) -> None: ...

    async def save_generic_protocol(
        self, evaluation_id: str, protocol: GenericProtocol
    ) -> None: ...


EnrichGenericProtocol = Callable[[GenericProtocol], GenericProtocol | None]


@dataclass
class DispatchParams:
    """Everything needed to start protocol generation for one tooth.

    Attributes:
        treatment_type: Treatment key (English aliases accepted).
        evaluation_id: Evaluation row the protocol belongs to.
        tooth: FDI tooth number, used by specialty templates.
        resin_params: Case payload for resin generation. Required for resina.
        cementation_params: Case payload for cementation generation.
            Required for porcelana.
        generic_tooth_data: Analysis findings for specialty templates.
        enrich_generic_protocol: Optional hook applied to a specialty
            protocol before it is saved. It may mutate the protocol in place
            or return a replacement.
    """

    treatment_type: str
    evaluation_id: str
    tooth: str = ""
    resin_params: dict[str, Any] | None = None
    cementation_params: dict[str, Any] | None = None
    generic_tooth_data: ToothData | dict[str, Any] | None = None
    enrich_generic_protocol: EnrichGenericProtocol | None = None


async def _call_with_retry(
    config: EngineConfig,
    call: Callable[..., Awaitable[None]],
    *args: Any,
) -> None:
    retrying = AsyncRetrying(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(config.client_max_attempts),
        wait=wait_random_exponential(
            multiplier=1,
            min=config.client_min_wait_seconds,
            max=config.client_max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            await call(*args)


async def dispatch_treatment_protocol(
    params: DispatchParams,
    clients: ProtocolClients,
    config: EngineConfig | None = None,
) -> None:
    """Start protocol generation for one tooth.

    Args:
        params: Treatment type, evaluation id and per-type payload.
        clients: Data-layer adapters.
        config: Retry settings; read from the environment when omitted.

    Raises:
        ProtocolDispatchError: Required params are missing or the treatment
            type is unknown. Raised before any client call.
    """
    config = config or EngineConfig.from_env()
    treatment_type = normalize_treatment_type(params.treatment_type or "")
    evaluation_id = params.evaluation_id

    if treatment_type == "resina":
        if params.resin_params is None:
            raise ProtocolDispatchError("resin_params required for resina treatment type")
        payload = {"evaluation_id": evaluation_id, **params.resin_params}
        logger.info("Dispatching resin protocol for evaluation %s", evaluation_id)
        await _call_with_retry(config, clients.invoke_resin, payload)
        return

    if treatment_type == "porcelana":
        if params.cementation_params is None:
            raise ProtocolDispatchError(
                "cementation_params required for porcelana treatment type"
            )
        payload = {"evaluation_id": evaluation_id, **params.cementation_params}
        if not payload.get("ceramic_type"):
            payload["ceramic_type"] = DEFAULT_CERAMIC_TYPE
        logger.info("Dispatching cementation protocol for evaluation %s", evaluation_id)
        await _call_with_retry(config, clients.invoke_cementation, payload)
        return

    if treatment_type in SPECIAL_TREATMENT_TYPES:
        protocol = get_generic_protocol(treatment_type, params.tooth, params.generic_tooth_data)
        if params.enrich_generic_protocol is not None:
            enriched = params.enrich_generic_protocol(protocol)
            if enriched is not None:
                protocol = enriched
        logger.info(
            "Saving %s protocol for evaluation %s (tooth %s)",
            treatment_type,
            evaluation_id,
            params.tooth,
        )
        await _call_with_retry(
            config, clients.save_generic_protocol, evaluation_id, protocol
        )
        return

    raise ProtocolDispatchError(f"Unknown treatment type: {params.treatment_type!r}")
