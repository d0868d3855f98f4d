import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from procurement_events.core.config import RemotePlatformConfig
from procurement_events.core.errors import ExternalSystemError, ResourceNotFoundError
from procurement_events.core.logging_config import logger
from procurement_events.schemas.events import DocumentAttachment, PublishDates
from procurement_events.schemas.rfx import (
    CreateUpdateRfx,
    CreateUpdateRfxResponse,
    ExportRfxResponse,
    OperationCode,
    OperatorUser,
    PublishRfx,
    Rfx,
)

OK_MSG = "OK"
EXPORT_COMPONENTS = "supplier;buyerAttachments;sellerAttachments"

ModelT = TypeVar("ModelT", bound=BaseModel)


class RfxGateway:
    """
    Typed client for the remote sourcing platform's RFx resource.

    One HTTP call per method, bounded by the configured timeout. Transport
    failures, timeouts, non-200 responses and non-success return codes are all
    raised as ExternalSystemError; nothing is retried here.
    """

    def __init__(self, config: RemotePlatformConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_seconds)

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"
        return headers

    def _url(self, endpoint_name: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{self.config.endpoint(endpoint_name)}"

    @asynccontextmanager
    async def _client(self):
        if self._session is not None:
            yield self._session
        else:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                yield session

    async def _request(self, method: str, endpoint_name: str, *, raw: bool = False, **kwargs) -> Any:
        url = self._url(endpoint_name)
        try:
            async with self._client() as session:
                async with session.request(
                    method, url, headers=self._headers, timeout=self._timeout, **kwargs
                ) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.error(f"Remote call {method} {url} failed: {resp.status}, {body}")
                        raise ExternalSystemError(f"Remote call {endpoint_name} failed: {body}", resp.status)
                    if raw:
                        return await resp.read(), resp.headers.get("Content-Type")
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Remote call {method} {url} could not complete: {str(e)}")
            raise ExternalSystemError(f"Remote call {endpoint_name} could not complete: {str(e) or type(e).__name__}") from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, action: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed response to {action}: {data}")
            raise ExternalSystemError(f"Malformed response to {action}") from e

    @staticmethod
    def _check_response(response: CreateUpdateRfxResponse, action: str) -> CreateUpdateRfxResponse:
        if response.return_code != 0 or response.return_message != OK_MSG:
            logger.error(f"Remote {action} rejected: {response}")
            raise ExternalSystemError(
                response.return_message or f"Unexpected error during {action}", response.return_code
            )
        return response

    async def create_update_rfx(self, rfx: Rfx, operation_code: OperationCode) -> CreateUpdateRfxResponse:
        payload = CreateUpdateRfx(operation_code=operation_code, rfx=rfx).to_payload()
        data = await self._request("POST", "createRfx", json=payload)
        if data is None:
            raise ExternalSystemError(f"Empty response to Rfx {operation_code.value}")
        response = self._check_response(
            self._parse(CreateUpdateRfxResponse, data, f"Rfx {operation_code.value}"), operation_code.value
        )
        logger.info(f"Rfx {response.rfx_id} ({response.rfx_reference_code}) {operation_code.value} succeeded")
        return response

    async def create_rfx(self, rfx: Rfx) -> CreateUpdateRfxResponse:
        return await self.create_update_rfx(rfx, OperationCode.CREATE_FROM_TEMPLATE)

    async def get_rfx(self, rfx_id: str) -> ExportRfxResponse:
        data = await self._request(
            "GET", "exportRfx", params={"comps": EXPORT_COMPONENTS, "flt": f"rfxId=={rfx_id}"}
        )
        if data is not None and not isinstance(data, dict):
            logger.error(f"Malformed response to Rfx export: {data}")
            raise ExternalSystemError("Malformed response to Rfx export")
        data_list = (data or {}).get("dataList") or []
        if not data_list:
            logger.error(f"Rfx {rfx_id} not found on the remote platform")
            raise ExternalSystemError(f"Rfx '{rfx_id}' not found on the remote platform")
        return self._parse(ExportRfxResponse, data_list[0], "Rfx export")

    async def upload_document(self, file_name: str, content: bytes, update: CreateUpdateRfx) -> CreateUpdateRfxResponse:
        form_data = aiohttp.FormData()
        form_data.add_field("data", json.dumps(update.to_payload()), content_type="application/json")
        form_data.add_field("file", content, filename=file_name)
        data = await self._request("POST", "createRfx", data=form_data)
        response = self._check_response(
            self._parse(CreateUpdateRfxResponse, data or {}, "document upload"), "document upload"
        )
        logger.info(f"File {file_name} uploaded to Rfx {response.rfx_id}")
        return response

    async def publish_rfx(self, rfx_id: str, rfx_reference_code: Optional[str],
                          publish_dates: PublishDates, user_id: str) -> None:
        payload = PublishRfx(
            rfx_id=rfx_id,
            rfx_reference_code=rfx_reference_code,
            operator_user=OperatorUser(id=user_id),
            new_closing_date=publish_dates.end_date.isoformat(),
        ).to_payload()
        data = await self._request("POST", "publishRfx", json=payload)
        self._check_response(self._parse(CreateUpdateRfxResponse, data or {}, "publish"), "publish")
        logger.info(f"Rfx {rfx_id} published by user {user_id}")

    async def get_document(self, file_id: int, file_name: str) -> DocumentAttachment:
        try:
            content, content_type = await self._request(
                "GET", "getAttachment", raw=True, params={"fileId": file_id, "fileName": file_name}
            )
        except ExternalSystemError as e:
            if e.return_code == 404:
                raise ResourceNotFoundError(f"Document '{file_name}' ({file_id}) not found") from e
            raise
        return DocumentAttachment(file_name=file_name, content_type=content_type, data=content)
