# src/srun_core/network.py
"""
SRUN 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 HTTP 会话的创建、请求与 JSONP 解包逻辑。
底层使用 requests.Session，通过 asyncio.to_thread 执行，避免阻塞事件循环。
该模块向上层提供“已解析的 JSON 对象”接口，并将所有 I/O 异常统一为 TransportError。
"""

import asyncio
import json
import logging
import re
import time
from typing import Any

import requests

from .exceptions import ProtocolError, TransportError
from .protocols.constants import PortalConst

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# callback 名 + 括号包裹的 JSON，末尾可带分号
# 日志中需要打码的查询参数 (info 可被 Token 还原出明文密码)
SECRET_FIELDS = frozenset({"password", "info", "chksum"})

_JSONP_RE = re.compile(r"^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$", re.DOTALL)


def unwrap_jsonp(text: str) -> Any:
    """剥离 JSONP 回调外壳并解析 JSON。

    裸 JSON 响应同样可以接受。

    Args:
        text: 响应体文本。

    Returns:
        Any: 解析后的 JSON 对象。

    Raises:
        ProtocolError: 响应体无法解析为 JSON。
    """
    match = _JSONP_RE.match(text)
    body = match.group(1) if match else text
    try:
        return json.loads(body)
    except ValueError as e:
        preview = text[:64].replace("\n", " ")
        raise ProtocolError(f"响应不是合法的 JSON/JSONP: {preview!r}") from e


def make_callback_name() -> str:
    """生成与网关前端一致的 jQuery 风格回调名。"""
    return f"{PortalConst.CALLBACK_PREFIX}_{int(time.time() * 1000)}"


class HttpClient:
    """
    封装 requests.Session 的异步 HTTP 客户端。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        verify_tls: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def _request(self, url: str, params: dict[str, Any] | None) -> requests.Response:
        """同步执行一次 GET，并将 requests 异常映射为 TransportError。"""
        try:
            resp = self.session.get(
                url, params=params, timeout=self.timeout, verify=self.verify_tls
            )
            resp.raise_for_status()
            return resp
        except requests.exceptions.Timeout as e:
            raise TransportError(f"请求超时 ({self.timeout}s): {url}") from e
        except requests.exceptions.SSLError as e:
            raise TransportError(f"TLS 握手失败: {url}: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"连接失败: {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"请求失败: {url}: {e}") from e

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> requests.Response:
        """
        发送 GET 请求 (Async)。
        """
        url = f"{self.base_url}{path}"
        return await asyncio.to_thread(self._request, url, params)

    async def get_jsonp(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """发送带 callback 的 GET 请求并返回解包后的 JSON 对象。

        Args:
            path: 端点路径。
            params: 查询参数 (callback 与 "_" 时间戳会自动补充)。

        Returns:
            Any: 解析后的响应对象。

        Raises:
            TransportError: 网络层失败。
            ProtocolError: 响应体无法解析。
        """
        query: dict[str, Any] = {"callback": make_callback_name()}
        query.update(params or {})
        query["_"] = str(int(time.time() * 1000))

        safe = {k: ("******" if k in SECRET_FIELDS else v) for k, v in query.items()}
        logger.debug(f"GET {path} {safe}")

        resp = await self.get(path, query)
        # 响应体可能包含 Challenge Token，只记录长度
        logger.debug(f"响应 {path}: {len(resp.text)} 字节")
        return unwrap_jsonp(resp.text)

    async def final_url(self, path: str = "/") -> str:
        """请求入口页面并返回重定向后的最终 URL (用于发现 ac_id)。"""
        resp = await self.get(path)
        return str(resp.url)

    async def close(self) -> None:
        """关闭 Session"""
        await asyncio.to_thread(self.session.close)
        logger.debug("HTTP Session 已关闭")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
