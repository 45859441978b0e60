class Templates:
    """Шаблоны для генерации Python клиента"""

    client_imports = """import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout
from pydantic import BaseModel, TypeAdapter

from . import models
"""

    helpers = """

def _dump(value: Any) -> Any:
    \"\"\"Pydantic модели в JSON-совместимые данные\"\"\"
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


def _query_items(params: Dict[str, Any]) -> List[tuple]:
    \"\"\"Query параметры без пустых значений, списки разворачиваются\"\"\"
    items = []
    for key, value in params.items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if isinstance(item, bool):
                # Boolean значения для query параметров должны быть строками
                item = str(item).lower()
            elif not isinstance(item, (str, int, float)):
                item = str(_dump(item))
            items.append((key, item))
    return items
"""

    base_client = """

class BaseClient:
    \"\"\"HTTP клиент на базе aiohttp с переиспользуемой сессией\"\"\"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._api_url = str(base_url).rstrip("/")
        self._timeout = timeout
        self._base_headers: Dict[str, str] = dict(headers or {})
        self._base_params: Dict[str, str] = {}
        self._session: Optional[ClientSession] = None
        self._session_lock = asyncio.Lock()

    @property
    def headers(self) -> Dict[str, str]:
        \"\"\"Получение текущих заголовков\"\"\"
        return dict(self._base_headers)

    def update_headers(self, **headers) -> "BaseClient":
        \"\"\"Обновление заголовков\"\"\"
        self._base_headers.update(headers)
        return self

    async def _ensure_session(self) -> ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = ClientSession(
                    timeout=ClientTimeout(total=self._timeout),
                    trust_env=True,  # Использовать системные прокси
                )
        return self._session

    async def close(self) -> None:
        \"\"\"Закрытие клиента и освобождение ресурсов\"\"\"
        async with self._session_lock:
            if self._session is not None and not self._session.closed:
                await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @staticmethod
    async def _read(response: ClientResponse) -> Any:
        if response.content_type == "application/json":
            return await response.json()
        text = await response.text()
        return text or None

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = f"{self._api_url}{path}"
        request_kwargs = {
            "params": _query_items({**self._base_params, **(params or {})}),
            "headers": {
                **self._base_headers,
                **{
                    key: str(value)
                    for key, value in (headers or {}).items()
                    if value is not None
                },
            },
        }
        if json is not None:
            request_kwargs["json"] = _dump(json)

        session = await self._ensure_session()
        logger.debug(f"Making {method} request to {url}")
"""

    send_with_errors = """
        try:
            async with session.request(method, url, **request_kwargs) as response:
                logger.debug(f"Response status: {response.status}")
                data = await self._read(response)
                if response.status >= 400:
                    raise ApiResponseError(
                        f"{method} {path} failed with status {response.status}",
                        response.status,
                        data,
                    )
                return data
        except asyncio.TimeoutError as exc:
            raise TimeoutError() from exc
        except ClientError as exc:
            raise NetworkError(str(exc) or "Network error", exc) from exc
"""

    send_plain = """
        async with session.request(method, url, **request_kwargs) as response:
            logger.debug(f"Response status: {response.status}")
            response.raise_for_status()
            return await self._read(response)
"""

    requirements = {
        "aiohttp": ">=3.8.0",
        "pydantic": ">=2.0.0",
    }


templates = Templates()
