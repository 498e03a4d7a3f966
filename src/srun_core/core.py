# File: src/srun_core/core.py
"""
SRUN 核心引擎 (Gateway Client)

职责：
1. 资源组装：Config + HttpClient。
2. 流程编排：Challenge -> Build -> Dispatch。
3. 响应分类：网关业务失败作为 OperationResult 返回，I/O 与协议错误向上抛出。

三个公开操作 (status / login / logout) 都是短小的线性序列，
引擎本身不保存任何跨调用的会话状态；Token 每次都会重新获取。
"""

import logging
import re
from urllib.parse import parse_qs, urlparse

from .config import SrunConfig
from .exceptions import ProtocolError, SrunError, TransportError
from .models import Operation, OperationResult
from .network import HttpClient
from .protocols import builder, challenge, portal
from .protocols.constants import Endpoint, PortalConst

logger = logging.getLogger(__name__)

_AC_ID_RE = re.compile(r"ac_id=(\d+)")


class SrunClient:
    """SRUN 门户认证客户端 (Async)。"""

    def __init__(self, config: SrunConfig, http: HttpClient | None = None) -> None:
        """初始化客户端。

        Args:
            config: 全局配置对象 (构造后只读)。
            http: 可选的 HTTP 客户端，便于测试注入；默认按配置创建。
        """
        self.config = config
        self.http = (
            http
            if http is not None
            else HttpClient(config.base_url, config.timeout, config.verify_tls)
        )
        logger.debug(f"SrunClient 已创建: {config!r}")

    async def status(self) -> OperationResult:
        """查询当前在线状态。

        Returns:
            OperationResult: error == "ok" 表示在线。

        Raises:
            TransportError: 网络通信异常。
            ProtocolError: 响应无法解析或缺少 error 字段。
        """
        data = await self.http.get_jsonp(Endpoint.USER_INFO, portal.build_status_query())
        return portal.parse_status_response(data)

    async def login(self) -> OperationResult:
        """执行登录流程。

        Returns:
            OperationResult: 网关的登录结果 (含业务失败)。

        Raises:
            EncodingError: 凭据无法编码 (发生在任何网络请求之前)。
            ChallengeError: Challenge 响应缺少 Token。
            TransportError: 网络通信异常。
            ProtocolError: 响应无法解析。
        """
        return await self._run(Operation.LOGIN)

    async def logout(self) -> OperationResult:
        """执行注销流程。

        与登录相同，总是先获取一个新的 Challenge Token。
        """
        return await self._run(Operation.LOGOUT)

    async def fetch_challenge(self, client_ip: str) -> str:
        """向网关请求 Challenge Token。"""
        query = challenge.build_challenge_query(self.config.username, client_ip)
        data = await self.http.get_jsonp(Endpoint.CHALLENGE, query)
        token = challenge.parse_challenge_response(data)
        logger.info(f"已获取 Challenge Token (ip={client_ip})")
        return token

    async def resolve_client_ip(self) -> str:
        """确定客户端 IP：优先使用配置覆盖值，否则从状态接口查询。"""
        if self.config.client_ip:
            return self.config.client_ip

        result = await self.status()
        if not result.online_ip:
            raise ProtocolError("无法从网关获取客户端 IP，请手动指定 --ip")
        logger.debug(f"从网关获取客户端 IP: {result.online_ip}")
        return result.online_ip

    async def resolve_ac_id(self) -> str:
        """确定 ac_id：优先使用配置值，否则从入口页的重定向 URL 中发现。"""
        if self.config.ac_id:
            return self.config.ac_id

        try:
            url = await self.http.final_url("/")
        except TransportError as e:
            logger.warning(
                f"入口页不可用 ({e})，使用默认 ac_id {PortalConst.DEFAULT_AC_ID}"
            )
            return PortalConst.DEFAULT_AC_ID

        values = parse_qs(urlparse(url).query).get("ac_id")
        if values:
            return values[0]

        match = _AC_ID_RE.search(url)
        if match:
            return match.group(1)

        logger.warning(f"未能从 {url} 发现 ac_id，使用默认值 {PortalConst.DEFAULT_AC_ID}")
        return PortalConst.DEFAULT_AC_ID

    async def _run(self, operation: Operation) -> OperationResult:
        """[Internal] Challenge -> Build -> Dispatch。"""
        cfg = self.config
        credentials = cfg.credentials

        # 编码检查必须先于任何网络请求
        builder.encode_credentials(credentials, cfg.charset)

        logger.info(f"开始 {operation.value} 流程 (User: {cfg.username})")
        try:
            client_ip = await self.resolve_client_ip()
            ac_id = await self.resolve_ac_id()
            token = await self.fetch_challenge(client_ip)

            params = builder.build_params(
                credentials,
                token,
                operation,
                client_ip,
                ac_id,
                scheme=cfg.scheme,
                charset=cfg.charset,
                n=cfg.n,
                type_=cfg.portal_type,
                enc_ver=cfg.enc_ver,
                os_name=cfg.os_name,
                device_name=cfg.device_name,
            )

            data = await self.http.get_jsonp(
                Endpoint.PORTAL, portal.build_portal_query(params)
            )
            return portal.parse_portal_response(data, operation)

        except SrunError as e:
            logger.error(f"{operation.value} 过程中断: {e}")
            raise

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
